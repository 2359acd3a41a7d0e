"""Preview module for image output.

Example:
    >>> from pathtracer.preview import write_image
    >>> write_image("output.png", pixels, (800, 600))
"""

from pathtracer.preview.export import pixels_to_array, write_image

__all__ = [
    "write_image",
    "pixels_to_array",
]
