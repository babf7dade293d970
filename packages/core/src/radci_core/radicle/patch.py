"""Patch comments through the radicle-httpd HTTP API."""

from __future__ import annotations

import logging

import requests

from radci_core.errors import CommentError

logger = logging.getLogger(__name__)

_PATCH_URL = "{node_url}/api/v1/projects/{repo_id}/patches/{patch_id}"
_TIMEOUT_SECS = 30

CREATE_COMMENT_TYPE = "revision.comment"
EDIT_COMMENT_TYPE = "revision.comment.edit"


def _error_message(response: requests.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text.strip()
    if isinstance(body, dict):
        error = body.get("error")
        if isinstance(error, dict):
            return str(error.get("message", ""))
        if error:
            return str(error)
        return str(body.get("message", ""))
    return str(body)


class RadicleHttpd:
    """Creates and edits patch revision comments on a Radicle node."""

    def __init__(self, node_url: str, session_token: str, session: requests.Session | None = None):
        self._node_url = node_url.rstrip("/")
        self._token = session_token
        self._session = session if session is not None else requests.Session()

    def post_or_edit_comment(
        self,
        repo_id: str,
        patch_id: str,
        revision_id: str,
        body: str,
        comment_id: str | None = None,
    ) -> str:
        """Create a comment on the revision, or edit ``comment_id`` when given.

        Returns the id of the comment that now carries ``body``.
        """
        payload: dict = {"type": CREATE_COMMENT_TYPE, "revision": revision_id, "body": body, "embeds": []}
        if comment_id is not None:
            payload["type"] = EDIT_COMMENT_TYPE
            payload["comment"] = comment_id

        url = _PATCH_URL.format(node_url=self._node_url, repo_id=repo_id, patch_id=patch_id)
        headers = {"Content-Type": "application/json", "Authorization": f"Bearer {self._token}"}
        try:
            response = self._session.patch(url, json=payload, headers=headers, timeout=_TIMEOUT_SECS)
        except requests.RequestException as e:
            raise CommentError(f"could not reach Radicle node: {e}") from e

        if response.status_code >= 400:
            raise CommentError(f"HTTP {response.status_code} {_error_message(response)}".strip())

        try:
            data = response.json()
        except ValueError:
            data = {}
        new_id = data.get("id") if isinstance(data, dict) else None
        if new_id:
            return str(new_id)
        if comment_id is not None:
            return comment_id
        raise CommentError("Radicle node did not return the id of the created comment")
