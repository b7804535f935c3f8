"""Result reporters."""

from int8_classifier.io.annotation import AnnotationReporter
from int8_classifier.io.base import BaseResultReporter
from int8_classifier.io.console import ConsoleReporter

__all__ = [
    "AnnotationReporter",
    "BaseResultReporter",
    "ConsoleReporter",
]
