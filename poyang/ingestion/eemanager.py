"""
Module `ingestion.eemanager` owns the Earth Engine session used by the water
pipeline: credential discovery, lazy initialization, ``getInfo`` retries and
filtered Sentinel-2 collections.
"""

import os
import json
import time
from typing import Optional, Any

from google.oauth2.credentials import Credentials

import ee
from ee import EEException

from poyang.core.logger import Logger
from .sensorspec import SensorSpec

TOKEN_ENV = "EARTHENGINE_TOKEN"
PROJECT_ENV = "POYANG_EE_PROJECT"


class EarthEngineManager:
    """
    Lazily initialized Earth Engine session.

    Credentials are looked up in order: a service-account key file, a refresh
    token in ``EARTHENGINE_TOKEN`` (JSON string or path to a JSON file), then
    the persistent credentials written by ``earthengine authenticate``.
    """

    def __init__(
        self,
        credential_path: Optional[str] = None,
        project: Optional[str] = None,
        logger=None,
    ):
        self.credential_path = credential_path
        self.token_env = os.getenv(TOKEN_ENV)
        self.project = project or os.getenv(PROJECT_ENV)
        self.logger = logger or Logger.get_logger(__name__)
        self._initialized = False

    def _token_credentials(self) -> Any | None:
        if os.path.exists(self.token_env):
            with open(self.token_env, "r", encoding="utf-8") as fh:
                token = json.load(fh)
        else:
            try:
                token = json.loads(self.token_env)
            except json.JSONDecodeError:
                self.logger.warning("%s is neither a file nor JSON", TOKEN_ENV)
                return None
        if not isinstance(token, dict) or "refresh_token" not in token:
            self.logger.warning("%s has no refresh_token; ignoring it", TOKEN_ENV)
            return None
        return Credentials(
            None,
            refresh_token=token["refresh_token"],
            token_uri=token.get("token_uri", ee.oauth.TOKEN_URI),
            client_id=token.get("client_id", ee.oauth.CLIENT_ID),
            client_secret=token.get("client_secret", ee.oauth.CLIENT_SECRET),
            scopes=token.get("scopes", ee.oauth.SCOPES),
            quota_project_id=token.get("project"),
        )

    def _credentials(self) -> Any | None:
        """Explicit credentials, or ``None`` to let ``ee`` use its own."""
        if self.credential_path:
            return ee.ServiceAccountCredentials(
                None, self.credential_path  # type: ignore[arg-type]
            )
        if self.token_env:
            return self._token_credentials()
        return None

    def initialize(self, force: bool = False) -> None:
        """
        Initialize Earth Engine once per process (again when *force* is set).
        Falls back to the interactive ``ee.Authenticate`` flow if the session
        cannot be created with the available credentials.
        """
        if self._initialized and not force:
            return
        credentials = self._credentials()
        try:
            if credentials is None:
                ee.Initialize(project=self.project)
            else:
                ee.Initialize(credentials, project=self.project)
        except EEException:
            self.logger.warning("Earth Engine not authenticated; starting auth flow")
            ee.Authenticate()
            ee.Initialize(project=self.project)
        self._initialized = True
        self.logger.debug("Earth Engine initialized (project=%s)", self.project)

    def safe_get_info(self, obj, max_retries: int = 3):
        """
        Evaluate ``obj.getInfo()`` with retries.

        A ``PERMISSION_DENIED`` on the first attempt triggers one
        re-authentication; other ``EEException``s are retried after
        1, 2, 4, ... seconds. The last error is re-raised.
        """
        for attempt in range(1, max_retries + 1):
            try:
                return obj.getInfo()
            except EEException as e:
                msg = str(e)
                last_attempt = attempt == max_retries
                if "PERMISSION_DENIED" in msg and attempt == 1 and not last_attempt:
                    self.logger.error(
                        "Earth Engine permission denied. Re-authenticating..."
                    )
                    ee.Authenticate()
                    self.initialize(force=True)
                    continue
                if last_attempt:
                    self.logger.error(
                        "getInfo() failed after %d attempts: %s", attempt, msg
                    )
                    raise
                delay = 2 ** (attempt - 1)
                self.logger.warning(
                    "Earth Engine error (attempt %d/%d): %s - retrying in %ds",
                    attempt,
                    max_retries,
                    msg,
                    delay,
                )
                time.sleep(delay)
        return None

    def get_image_collection(
        self,
        collection_id: str,
        start_date: str,
        end_date: str,
        region,
        mask_clouds: bool = True,
    ) -> ee.ImageCollection:
        """
        Scenes of *collection_id* between *start_date* (inclusive) and
        *end_date* (exclusive) intersecting *region*, cloud-masked by default.
        """
        coll = (
            ee.ImageCollection(collection_id)
            .filterDate(start_date, end_date)
            .filterBounds(region)
        )
        if not mask_clouds:
            return coll
        return coll.map(SensorSpec.from_collection_id(collection_id).cloud_mask)


# Shared session for the CLI and the dashboard
ee_manager = EarthEngineManager()
