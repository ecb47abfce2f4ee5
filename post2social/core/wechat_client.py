"""
WeChat Official Account API client
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from .errors import AuthError, PublishError, ResourceFetchError, UploadError
from .models import DraftArticle, UploadedImage

logger = logging.getLogger(__name__)

TOKEN_URL = "https://api.weixin.qq.com/cgi-bin/token"
ADD_MATERIAL_URL = "https://api.weixin.qq.com/cgi-bin/material/add_material"
DRAFT_ADD_URL = "https://api.weixin.qq.com/cgi-bin/draft/add"

ARTICLE_TYPES = ("news", "newspic")
WECHAT_CDN_PREFIX = "https://mmbiz.qpic.cn"


class WeChatClient:
    """Thin wrapper over the three API calls the publisher needs"""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 30.0):
        self.session = session or requests.Session()
        self.timeout = timeout

    def fetch_token(self, app_id: str, app_secret: str) -> str:
        payload = self._request(
            "GET",
            TOKEN_URL,
            operation="fetch_token",
            error_cls=AuthError,
            params={
                "grant_type": "client_credential",
                "appid": app_id,
                "secret": app_secret,
            },
        )
        if payload.get("errcode"):
            errcode = payload.get("errcode")
            errmsg = payload.get("errmsg", "")
            if errcode == 40164:
                raise AuthError(
                    "invalid ip (errcode 40164). The account has an IP whitelist enabled; "
                    f"add this machine's public IP to it. details: {errmsg}",
                    code=errcode,
                )
            raise AuthError(f"Access token error {errcode}: {errmsg}", code=errcode)

        token = payload.get("access_token")
        if not token:
            raise AuthError(f"No access_token in response: {payload}")
        return token

    def upload_image(self, data: bytes, filename: str, content_type: str, token: str) -> UploadedImage:
        """
        Upload an image as permanent material

        Args:
            data: Image bytes
            filename: Name sent in the multipart body
            content_type: MIME type of data
            token: Access token

        Returns:
            UploadedImage with media_id and an https url
        """
        payload = self._request(
            "POST",
            ADD_MATERIAL_URL,
            operation="upload_image",
            error_cls=UploadError,
            params={"access_token": token, "type": "image"},
            files={"media": (filename, data, content_type)},
        )
        if payload.get("errcode"):
            raise UploadError(
                f"Upload failed {payload.get('errcode')}: {payload.get('errmsg', '')}",
                code=payload.get("errcode"),
            )

        media_id = payload.get("media_id")
        url = payload.get("url") or ""
        if not media_id:
            raise UploadError(f"upload response missing media_id for {filename}: {payload}")
        if url.startswith("http://"):
            url = "https://" + url[len("http://"):]
        return UploadedImage(media_id=media_id, url=url)

    def publish_draft(self, article: DraftArticle, token: str) -> str:
        body = {"articles": [build_article_payload(article)]}
        payload = self._request(
            "POST",
            DRAFT_ADD_URL,
            operation="publish_draft",
            error_cls=PublishError,
            params={"access_token": token},
            data=json.dumps(body, ensure_ascii=False).encode("utf-8"),
            headers={"Content-Type": "application/json; charset=utf-8"},
        )
        if payload.get("errcode"):
            raise PublishError(
                f"Publish failed {payload.get('errcode')}: {payload.get('errmsg', '')}",
                code=payload.get("errcode"),
            )
        media_id = payload.get("media_id")
        if not media_id:
            raise PublishError(f"draft response missing media_id: {payload}")
        return media_id

    def _request(self, method: str, url: str, operation: str, error_cls, **kwargs) -> Dict[str, Any]:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ResourceFetchError(url, operation=operation, reason=str(exc)) from exc

        if response.status_code >= 400:
            raise error_cls(f"HTTP {response.status_code} from {url}", code=response.status_code)
        try:
            return response.json()
        except ValueError as exc:
            raise error_cls(f"invalid JSON response from {url}") from exc


def build_article_payload(article: DraftArticle) -> Dict[str, Any]:
    if article.article_type not in ARTICLE_TYPES:
        raise ValueError(f"unknown article type: {article.article_type}")

    if article.article_type == "newspic":
        if not article.image_media_ids:
            raise PublishError("newspic requires at least one image")
        payload: Dict[str, Any] = {
            "article_type": "newspic",
            "title": article.title,
            "content": article.content,
            "need_open_comment": 1,
            "only_fans_can_comment": 0,
            "image_info": {
                "image_list": [{"image_media_id": media_id} for media_id in article.image_media_ids],
            },
        }
        if article.author:
            payload["author"] = article.author
        return payload

    payload = {
        "article_type": "news",
        "title": article.title,
        "content": article.content,
        "thumb_media_id": article.thumb_media_id,
        "need_open_comment": 1,
        "only_fans_can_comment": 0,
    }
    if article.author:
        payload["author"] = article.author
    if article.digest:
        payload["digest"] = article.digest
    return payload


def is_wechat_hosted(uri: str) -> bool:
    return (uri or "").startswith(WECHAT_CDN_PREFIX)
