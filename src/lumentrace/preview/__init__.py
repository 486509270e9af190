"""Image output for rendered frames."""

from .export import compute_rmse, format_ppm, image_to_uint8, save_image, save_png, save_ppm

__all__ = [
    "compute_rmse",
    "format_ppm",
    "image_to_uint8",
    "save_image",
    "save_png",
    "save_ppm",
]
