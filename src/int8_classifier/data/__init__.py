"""Image directory and label file loading."""

from int8_classifier.data.utils import IMAGE_EXTENSIONS, list_images, load_labels

__all__ = ["IMAGE_EXTENSIONS", "list_images", "load_labels"]
