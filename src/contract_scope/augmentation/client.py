"""The augmenter capability and its HTTP implementation."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

import requests

from ..exceptions import (
    AugmentationHTTPError,
    AugmentationTimeoutError,
    AugmentationUnavailableError,
    MalformedAugmentationError,
)
from ..logging_config import get_logger

logger = get_logger(__name__)

HEALTH_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class AugmentationResult:
    """Parsed response of the external analyzer."""

    success: bool
    workspace_id: str
    overridden: Tuple[str, ...] = ()
    factors: Dict[str, Any] = field(default_factory=dict)
    raw: Dict[str, Any] = field(default_factory=dict)
    api_version: str = "v1"
    timestamp: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Any, workspace_id: str = "") -> "AugmentationResult":
        """Validate and wrap a decoded JSON payload.

        Raises:
            MalformedAugmentationError: If a required key is missing or has
                the wrong type
        """
        if not isinstance(payload, dict):
            raise MalformedAugmentationError(
                "Augmentation payload is not a JSON object", workspace_id=workspace_id
            )
        for key in ("success", "overridden", "factors"):
            if key not in payload:
                raise MalformedAugmentationError(
                    f"Augmentation payload is missing '{key}'", workspace_id=workspace_id
                )

        overridden = payload["overridden"]
        factors = payload["factors"]
        if not isinstance(overridden, list) or not all(isinstance(k, str) for k in overridden):
            raise MalformedAugmentationError(
                "'overridden' must be a list of factor names", workspace_id=workspace_id
            )
        if not isinstance(factors, dict):
            raise MalformedAugmentationError(
                "'factors' must be an object", workspace_id=workspace_id
            )

        success = payload["success"]
        if not isinstance(success, bool):
            raise MalformedAugmentationError(
                "'success' must be a boolean", workspace_id=workspace_id
            )
        meta = payload.get("meta") or {}
        if not isinstance(meta, dict):
            raise MalformedAugmentationError(
                "'meta' must be an object", workspace_id=workspace_id
            )
        raw = payload.get("raw") or {}
        return cls(
            success=success,
            workspace_id=str(payload.get("workspace_id") or workspace_id),
            overridden=tuple(overridden),
            factors=dict(factors),
            raw=raw if isinstance(raw, dict) else {},
            api_version=str(meta.get("api_version", "v1")),
            timestamp=meta.get("timestamp"),
        )


class Augmenter(Protocol):
    """Supplies higher-fidelity overrides for some analysis factors."""

    def augment(
        self, workspace_id: str, selected_files: Optional[Sequence[str]] = None
    ) -> AugmentationResult: ...


class HttpAugmenter:
    """Augmenter backed by the external analyzer's HTTP API.

    ``POST {base_url}/augment`` with ``{workspace_id, selected_files,
    api_version}``; the analyzer reads the sources from the shared workspace.
    """

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 120.0,
        api_version: str = "v1",
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.api_version = api_version
        self.session = session or requests.Session()

    def augment(
        self, workspace_id: str, selected_files: Optional[Sequence[str]] = None
    ) -> AugmentationResult:
        payload: Dict[str, Any] = {
            "workspace_id": workspace_id,
            "api_version": self.api_version,
        }
        if selected_files:
            payload["selected_files"] = list(selected_files)

        url = f"{self.base_url}/augment"
        logger.debug(f"POST {url} workspace={workspace_id}")

        try:
            resp = self.session.post(url, json=payload, timeout=self.timeout_seconds)
        except requests.exceptions.Timeout:
            raise AugmentationTimeoutError(self.timeout_seconds, workspace_id=workspace_id)
        except requests.exceptions.RequestException as e:
            raise AugmentationUnavailableError(
                f"Augmentation service unreachable at {self.base_url}: {e}",
                workspace_id=workspace_id,
            )

        if not 200 <= resp.status_code < 300:
            raise AugmentationHTTPError(resp.status_code, workspace_id=workspace_id)

        try:
            body = resp.json()
        except ValueError as e:
            raise MalformedAugmentationError(
                f"Augmentation response is not JSON: {e}", workspace_id=workspace_id
            )

        return AugmentationResult.from_payload(body, workspace_id=workspace_id)

    def is_available(self) -> bool:
        """True when ``GET /health`` answers 200 within five seconds."""
        try:
            resp = self.session.get(f"{self.base_url}/health", timeout=HEALTH_TIMEOUT_SECONDS)
        except requests.exceptions.RequestException as e:
            logger.debug(f"Augmentation health check failed: {e}")
            return False
        return resp.status_code == 200
