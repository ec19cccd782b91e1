from posterlink.client.api import ApiError, PosterLinkClient
from posterlink.client.export import ExportPipeline, ExportResult, ExportStatus
from posterlink.client.gate import AccessGate, GateDecision, GateOutcome
from posterlink.client.renderer import Poster, poster_to_html, remix, render_poster
from posterlink.client.session import PosterSession

__all__ = [
    "AccessGate",
    "ApiError",
    "ExportPipeline",
    "ExportResult",
    "ExportStatus",
    "GateDecision",
    "GateOutcome",
    "Poster",
    "PosterLinkClient",
    "PosterSession",
    "poster_to_html",
    "remix",
    "render_poster",
]
