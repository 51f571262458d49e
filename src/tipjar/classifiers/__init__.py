"""Classifier registry."""

from ..config import Config
from ..llm.base import LLMProvider
from .base import TipClassifier, classification_from_dict, unavailable
from .batch import BatchClassification, BatchTipClassifier
from .single import SingleTipClassifier

__all__ = [
    "BatchClassification",
    "BatchTipClassifier",
    "SingleTipClassifier",
    "TipClassifier",
    "build_classifiers",
    "classification_from_dict",
    "unavailable",
]


def build_classifiers(
    llm: LLMProvider, config: Config
) -> tuple[SingleTipClassifier, BatchTipClassifier]:
    """Create the single-item and batch classifiers sharing one provider."""
    return (
        SingleTipClassifier(llm, temperature=config.temperature),
        BatchTipClassifier(llm, temperature=config.temperature),
    )
