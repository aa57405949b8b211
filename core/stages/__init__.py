"""
Pipeline stages for the Catwatch Node.

    CaptureStage → [frame_queue, maxsize=1] → AnalysisStage → EventBus

Each stage runs in its own thread. The frame queue keeps only the latest
frame: a frame that arrives while the previous one is still waiting
replaces it, so the analysis worker never falls behind the camera.
"""
from .capture import CaptureStage, offer_latest
from .analysis import AnalysisStage

__all__ = ["CaptureStage", "AnalysisStage", "offer_latest"]
