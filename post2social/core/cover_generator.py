"""
Cover image generation - gradient background with the article title
"""
from __future__ import annotations

import html
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Union

from PIL import Image, ImageColor, ImageDraw, ImageFont

from .fallback import Unavailable, run_chain

logger = logging.getLogger(__name__)

FONT_SIZE = 48
MAX_LINES = 3
FONT_CANDIDATES = (
    "PingFang.ttc",
    "Hiragino Sans GB.ttc",
    "msyh.ttc",
    "NotoSansCJK-Bold.ttc",
    "NotoSansCJK-Regular.ttc",
    "DejaVuSans-Bold.ttf",
    "DejaVuSans.ttf",
)


@dataclass
class CoverOptions:
    title: str
    output: Path
    width: int = 900
    height: int = 500
    gradient_start: str = "#667eea"
    gradient_end: str = "#764ba2"
    text_color: str = "white"


@dataclass
class CoverResult:
    output: Path
    method: str
    width: int
    height: int

    def to_dict(self) -> dict:
        return {
            "success": True,
            "output": str(self.output),
            "size": f"{self.width}x{self.height}",
            "method": self.method,
        }


def generate_cover(options: CoverOptions) -> CoverResult:
    """
    Render a cover, trying a raster image first and plain SVG last

    Args:
        options: Title, size, colors and output path

    Returns:
        CoverResult naming the file written and the method used
    """
    if not options.title.strip():
        raise ValueError("cover title cannot be empty")
    options.output = Path(options.output).expanduser().resolve()
    options.output.parent.mkdir(parents=True, exist_ok=True)

    return run_chain(
        [
            ("pillow", lambda: _render_with_pillow(options)),
            ("svg", lambda: _render_svg(options)),
        ]
    )


def wrap_title(title: str, fits) -> List[str]:
    """Split title into at most MAX_LINES lines, character by character"""
    lines: List[str] = []
    current = ""
    for char in title.strip():
        candidate = current + char
        if current and not fits(candidate):
            lines.append(current)
            current = char.lstrip()
        else:
            current = candidate
    if current:
        lines.append(current)
    return [line.strip() for line in lines[:MAX_LINES]]


def _render_with_pillow(options: CoverOptions) -> Union[CoverResult, Unavailable]:
    suffix = options.output.suffix.lower()
    if suffix == ".svg":
        return Unavailable("svg output requested")

    try:
        start = Image.new("RGB", (options.width, options.height), ImageColor.getrgb(options.gradient_start))
        end = Image.new("RGB", (options.width, options.height), ImageColor.getrgb(options.gradient_end))
        mask = Image.linear_gradient("L").rotate(90).resize((options.width, options.height))
        image = Image.composite(end, start, mask)

        draw = ImageDraw.Draw(image)
        font = _load_font(FONT_SIZE)
        max_width = options.width * 0.8
        lines = wrap_title(options.title, lambda text: draw.textlength(text, font=font) <= max_width)

        line_height = FONT_SIZE * 1.2
        start_y = options.height / 2 - len(lines) * line_height / 2
        fill = ImageColor.getrgb(options.text_color)
        for index, line in enumerate(lines):
            y = start_y + index * line_height + line_height / 2
            draw.text((options.width / 2, y), line, font=font, fill=fill, anchor="mm")

        if suffix == ".png":
            image.save(options.output, format="PNG", optimize=True)
        else:
            image.save(options.output, format="JPEG", quality=90)
    except (OSError, ValueError) as exc:
        return Unavailable(f"pillow rendering failed: {exc}")

    return CoverResult(output=options.output, method="pillow", width=options.width, height=options.height)


def _render_svg(options: CoverOptions) -> CoverResult:
    output = options.output
    if output.suffix.lower() != ".svg":
        output = output.with_suffix(".svg")
        logger.warning("Raster rendering unavailable, writing SVG instead: %s", output)

    lines = wrap_title(options.title, lambda text: len(text) <= int(options.width * 0.8 / (FONT_SIZE * 0.6)))
    line_height = 60
    start_y = (options.height - len(lines) * line_height) / 2
    texts = "\n  ".join(
        f'<text x="50%" y="{start_y + index * line_height + line_height / 2:g}" '
        f'font-family="PingFang SC, Hiragino Sans GB, Microsoft YaHei, sans-serif" '
        f'font-size="{FONT_SIZE}" font-weight="bold" fill="{html.escape(options.text_color)}" '
        f'text-anchor="middle" dominant-baseline="middle">{html.escape(line, quote=False)}</text>'
        for index, line in enumerate(lines)
    )
    svg = f"""<svg width="{options.width}" height="{options.height}" xmlns="http://www.w3.org/2000/svg">
  <defs>
    <linearGradient id="grad" x1="0%" y1="0%" x2="100%" y2="100%">
      <stop offset="0%" style="stop-color:{html.escape(options.gradient_start)};stop-opacity:1" />
      <stop offset="100%" style="stop-color:{html.escape(options.gradient_end)};stop-opacity:1" />
    </linearGradient>
  </defs>
  <rect width="100%" height="100%" fill="url(#grad)"/>
  {texts}
</svg>
"""
    output.write_text(svg, encoding="utf-8")
    return CoverResult(output=output, method="svg", width=options.width, height=options.height)


def _load_font(size: int):
    for name in FONT_CANDIDATES:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)
