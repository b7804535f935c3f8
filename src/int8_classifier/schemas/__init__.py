"""Classification result and tensor metadata schemas."""

from int8_classifier.schemas.annotation import (
    ClassificationAnnotation,
    ClassificationPrediction,
    ClassificationResult,
)
from int8_classifier.schemas.info import AnnotationInfo
from int8_classifier.schemas.tensor import TensorDescriptor, TensorInfo

__all__ = [
    "AnnotationInfo",
    "ClassificationAnnotation",
    "ClassificationPrediction",
    "ClassificationResult",
    "TensorDescriptor",
    "TensorInfo",
]
