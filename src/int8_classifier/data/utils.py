"""Utility functions for locating images and loading labels."""

from pathlib import Path

from loguru import logger

from int8_classifier.errors import ConfigurationError

IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png")


def get_files(root: Path, extensions: tuple[str, ...]) -> list[Path]:
    """Find regular files directly under root matching extensions.

    Args:
        root: Directory to list.  Subdirectories are not searched.
        extensions: Tuple of lowercase extensions including dot
            (e.g., (".jpg", ".png")).

    Returns:
        Sorted list of matching file paths.
    """
    files = []
    for p in root.iterdir():
        if p.is_file() and p.suffix.lower() in extensions:
            files.append(p)
    return sorted(files)


def list_images(image_dir: Path) -> list[Path]:
    """List the ``.jpg``/``.jpeg``/``.png`` files of a flat image directory.

    Raises:
        ConfigurationError: If ``image_dir`` is not a directory or holds
            no eligible image.
    """
    if not image_dir.is_dir():
        raise ConfigurationError(f"{image_dir} is not a valid directory")
    images = get_files(image_dir, IMAGE_EXTENSIONS)
    if not images:
        raise ConfigurationError(f"No images found under {image_dir}")
    logger.info(f"Found {len(images)} image(s) under {image_dir}")
    return images


def load_labels(path: Path) -> list[str]:
    """Read one class name per line; the line number is the class id.

    Raises:
        ConfigurationError: If the file cannot be read or is empty.
    """
    try:
        with open(path, encoding="utf-8") as f:
            labels = [line.rstrip("\r\n") for line in f]
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigurationError(f"Cannot open label file {path}: {e}") from e
    if not labels:
        raise ConfigurationError(f"No labels found in {path}")
    logger.debug(f"Loaded {len(labels)} labels from {path}")
    return labels
