from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional, Sequence, Type, TypeVar

import requests
from pydantic import ValidationError

from .auth import TokenSession
from .config import Settings
from .errors import RemoteError
from .models import ApiResponse, MaterialListResponse, Record, RecordType, RemoteRecord
from .rules import material_names

log = logging.getLogger(__name__)

MATERIALS = "training-module/additional-material"

R = TypeVar("R", bound=ApiResponse)


class LmsClient:
    """Additional materials of one training module, per group."""

    def __init__(self, settings: Settings, tokens: TokenSession, http: Optional[requests.Session] = None):
        self.settings = settings
        self.tokens = tokens
        self.http = http or tokens.http

    def _send(self, method: str, path: str, **kwargs) -> requests.Response:
        headers = {"Authorization": f"Bearer {self.tokens.access_token}"}
        try:
            return self.http.request(
                method,
                f"{self.settings.api_url}/{path}",
                headers=headers,
                timeout=self.settings.timeout,
                **kwargs,
            )
        except requests.RequestException as e:
            raise RemoteError(f"Network error: {e}") from e

    def _call(self, method: str, path: str, model: Type[R], **kwargs) -> R:
        r = self._send(method, path, **kwargs)
        if r.status_code == 401:
            # AuthError from renew() is fatal and propagates
            self.tokens.renew()
            r = self._send(method, path, **kwargs)
            if r.status_code == 401:
                self.tokens.renew()

        try:
            res = model.model_validate(r.json())
        except (ValueError, ValidationError) as e:
            raise RemoteError(
                f"GoITeens LMS returned an invalid response (HTTP {r.status_code})",
                status_code=r.status_code,
            ) from e

        if not res.success:
            raise RemoteError(
                f"GoITeens LMS returned an error: {res.error or f'HTTP {r.status_code}'}",
                status_code=r.status_code,
            )
        if r.status_code >= 400:
            raise RemoteError(f"GoITeens LMS returned HTTP {r.status_code}", status_code=r.status_code)
        return res

    # ----- operations -----

    def list_records(self, group_id: int) -> List[RemoteRecord]:
        res = self._call(
            "GET",
            f"{MATERIALS}/list",
            MaterialListResponse,
            params={"moduleId": self.settings.module_id, "groupId": group_id},
        )
        if res.group is None:
            raise RemoteError("GoITeens LMS returned an invalid response: no materials list")
        log.debug("group %s has %d materials", group_id, len(res.group))
        return res.group

    def create_material(self, group_id: int, name: str, link: str, material_type: RecordType) -> None:
        payload: Dict[str, Any] = {
            "category": "group",
            "type": material_type.value,
            "moduleId": self.settings.module_id,
            "groupId": group_id,
            "name": name,
            "link": link,
        }
        self._call("POST", f"{MATERIALS}/create", ApiResponse, json=payload)

    def create_record(self, group_id: int, record: Record, names: Optional[Sequence[str]] = None) -> List[str]:
        """
        Upload one record. The LMS keeps a single link per material, so a record
        with several links becomes several materials ('Name (1)', 'Name (2)', ...).
        `names` overrides those (the planner makes them unique across a batch).
        Stops at the first failed material. Returns the material names created.
        """
        created: List[str] = []
        names = list(names) if names else material_names(record.name, len(record.links))
        for name, link in zip(names, record.links):
            self.create_material(group_id, name, link, record.type)
            created.append(name)
        return created

    def delete_record(self, record_id: int) -> None:
        self._call("POST", f"{MATERIALS}/delete", ApiResponse, json={"materialId": record_id})
