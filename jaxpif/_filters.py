from functools import partial
import jax.numpy as jnp

__all__ = ['delta_shape', 'gaussian_shape', 'triangle_shape', 'shape_function', 'build_shape_filter']

_SHAPES = ("delta", "gaussian", "triangle")


def delta_shape(x):
    """Point particle: unit weight at x == 0, zero elsewhere."""
    return jnp.where(x == 0, 1.0, 0.0)


def gaussian_shape(x, sigma=0.05):
    """Normalized Gaussian cloud of standard deviation sigma."""
    return jnp.exp(-x * x / (2 * sigma * sigma)) / jnp.sqrt(2 * jnp.pi * sigma * sigma)


def triangle_shape(x, width):
    """Linear (cloud-in-cell) hat of half-width `width`."""
    return jnp.maximum(1 - jnp.abs(x / width), 0.0)


def shape_function(name, width=None, dx=None):
    """
    Resolve a configured shape name into a callable of position.

    Args:
        name (str): One of "delta", "gaussian" or "triangle".
        width (float, optional): Gaussian sigma or triangle half-width.
            Defaults to 0.05 for the Gaussian and to dx for the triangle.
        dx (float, optional): Grid spacing, used as the default triangle width.

    Returns:
        callable: shape(x) evaluated elementwise.
    """
    if name == "delta":
        return delta_shape
    if name == "gaussian":
        return partial(gaussian_shape, sigma=0.05 if width is None else width)
    if name == "triangle":
        width = dx if width is None else width
        if width is None:
            raise ValueError("triangle shape needs a width or the grid spacing dx")
        return partial(triangle_shape, width=width)
    raise ValueError(f"Unknown particle shape {name!r}, expected one of {_SHAPES}")


def build_shape_filter(length, number_grid_points, shape=delta_shape, transform=None):
    """
    Fourier coefficients of a particle shape, normalized to conserve charge.

    The shape is sampled on G uniform points of one period as
    ``shape(x) + shape(L - x)`` so the sampled kernel is even and its transform
    real. Samples are normalized so that ``sum(s) * dx == 1`` before the
    unnormalized FFT, which makes the delta shape a constant filter of 1/dx;
    the field solver's factor dx cancels it.

    Args:
        length (float): Periodic system length.
        number_grid_points (int): Grid size G.
        shape (callable): Shape function centred at 0.
        transform (optional): Object providing ``uniform_fft``; jnp.fft.rfft if None.

    Returns:
        array: Complex filter coefficients for modes 0..G/2-1, shape (G/2,).
    """
    dx = length / number_grid_points
    x = jnp.arange(number_grid_points) * dx
    samples = shape(x) + shape(length - x)
    samples = samples / (jnp.sum(samples) * dx)

    if transform is None:
        coefficients = jnp.fft.rfft(samples)
    else:
        coefficients = transform.uniform_fft(samples)
    return coefficients[:number_grid_points // 2].astype(jnp.complex128)
