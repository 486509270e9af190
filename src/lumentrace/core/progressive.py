"""Accumulate samples over several calls and report progress between batches.

``ProgressiveRenderer`` owns no pixel data of its own: it sizes the
integrator's accumulation buffer and feeds it batches of samples. Every
sample keeps its global index, so the image is identical however the
samples were split into batches.

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from lumentrace.camera.thin_lens import setup_camera
    >>> from lumentrace.core.progressive import ProgressiveRenderer
    >>> from lumentrace.scene.presets import create_three_spheres_scene
    >>> _, camera = create_three_spheres_scene()
    >>> setup_camera(camera)
    >>> renderer = ProgressiveRenderer(400, 225, seed=1)
    >>> for done, total in renderer.render_iter(100, batch_size=10):
    ...     print(f"{done}/{total}")
    >>> renderer.save_image("image.png")
"""

from collections.abc import Callable, Generator
from pathlib import Path

import numpy as np
import numpy.typing as npt

from lumentrace.core.integrator import (
    clear_render_target,
    get_image_numpy,
    get_total_samples,
    render_image,
    setup_render_target,
)
from lumentrace.preview.export import image_to_uint8, save_image
from lumentrace.settings import DEFAULT_MAX_DEPTH, RenderSettings

# Called as callback(samples_done, samples_target)
ProgressCallback = Callable[[int, int], None]


class ProgressiveRenderer:
    """Batched front end to the integrator's accumulation buffer.

    Attributes:
        seed: Seed of the per-pixel random streams.
        max_depth: Bounce budget per path.
    """

    def __init__(
        self,
        width: int,
        height: int,
        *,
        seed: int = 0,
        max_depth: int = DEFAULT_MAX_DEPTH,
    ) -> None:
        """Size the render target and clear it.

        Raises:
            ValueError: If either dimension is not positive or is larger
                than the render target allows.
        """
        self.seed = seed
        self.max_depth = max_depth
        self._width = 0
        self._height = 0
        self.resize(width, height)

    @classmethod
    def from_settings(cls, settings: RenderSettings) -> "ProgressiveRenderer":
        return cls(
            settings.width,
            settings.height,
            seed=settings.seed,
            max_depth=settings.max_depth,
        )

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def sample_count(self) -> int:
        """Samples per pixel accumulated since the last reset."""
        return get_total_samples()

    def reset(self) -> None:
        clear_render_target()

    def resize(self, width: int, height: int) -> None:
        """Change the output size; accumulated samples are discarded."""
        setup_render_target(width, height)
        self._width, self._height = width, height

    def render(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
        callback: ProgressCallback | None = None,
    ) -> None:
        """Add ``num_samples`` samples per pixel, ``batch_size`` at a time.

        ``callback`` runs after every batch with the samples accumulated so
        far and the total this call is heading for.

        Raises:
            ValueError: If ``batch_size`` is not positive.
        """
        for done, target in self.render_iter(num_samples, batch_size):
            if callback is not None:
                callback(done, target)

    def render_iter(
        self,
        num_samples: int = 1,
        batch_size: int = 1,
    ) -> Generator[tuple[int, int], None, None]:
        """Like render(), but yields ``(done, target)`` after every batch.

        Closing the generator early keeps whatever was already rendered.

        Raises:
            ValueError: If ``batch_size`` is not positive.
        """
        if batch_size <= 0:
            raise ValueError(f"batch_size must be positive, got {batch_size}")

        target = self.sample_count + max(num_samples, 0)
        while self.sample_count < target:
            render_image(
                min(batch_size, target - self.sample_count),
                max_depth=self.max_depth,
                seed=self.seed,
            )
            yield self.sample_count, target

    def get_image_numpy(self) -> npt.NDArray[np.float32]:
        """Gamma-corrected float image, shape (height, width, 3), top row first."""
        return get_image_numpy()

    def get_image_uint8(self) -> npt.NDArray[np.uint8]:
        return image_to_uint8(self.get_image_numpy())

    def save_image(self, filepath: str | Path) -> None:
        """Write the current image as PPM or PNG depending on the extension."""
        save_image(self.get_image_numpy(), filepath)

    def __repr__(self) -> str:
        return (
            f"ProgressiveRenderer(width={self.width}, height={self.height}, "
            f"samples={self.sample_count}, seed={self.seed})"
        )
