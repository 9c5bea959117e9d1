from .briefing import BriefingGenerator
from .classifier import ClassificationPipeline

__all__ = ["BriefingGenerator", "ClassificationPipeline"]
