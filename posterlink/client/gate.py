import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from posterlink.client.api import ApiError, PosterLinkClient
from posterlink.client.export import ExportPipeline, ExportResult
from posterlink.models import VideoInfo

logger = logging.getLogger(__name__)


class GateDecision(Enum):
    EXPORT = "export"
    UPGRADE_REQUIRED = "upgrade_required"


@dataclass
class GateOutcome:
    decision: GateDecision
    result: Optional[ExportResult] = None


class AccessGate:
    """Free users get an upgrade prompt, premium users get the export.

    The premium flag is always read from the server, never from a cached
    user dict, so edited local state cannot unlock exports.
    """

    def __init__(self, client: PosterLinkClient, pipeline: ExportPipeline):
        self.client = client
        self.pipeline = pipeline

    def is_premium(self) -> bool:
        return bool(self.client.current_user().get("isPremium"))

    def request_export(self, info: VideoInfo) -> GateOutcome:
        if not self.is_premium():
            return GateOutcome(GateDecision.UPGRADE_REQUIRED)
        return GateOutcome(GateDecision.EXPORT, self.pipeline.export(info))

    def upgrade_and_export(self, info: VideoInfo) -> GateOutcome:
        """Upgrade the account, then export. Already-premium accounts just export."""
        try:
            self.client.upgrade_to_premium()
        except ApiError as e:
            if e.status_code != 400 or not self.is_premium():
                raise
            logger.info("Account was already premium")
        return self.request_export(info)
