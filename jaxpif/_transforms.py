import numpy as np
import finufft
import jax
import jax.numpy as jnp

__all__ = ['FinufftTransform', 'tolerance_from_order']


def tolerance_from_order(order):
    """Relative NUFFT tolerance matching an interpolation order of accuracy."""
    if order < 1:
        raise ValueError(f"Interpolation order must be positive, got {order}")
    return 10.0 ** (-order)


class FinufftTransform:
    """
    Spectral transforms between particle positions and Fourier modes of a periodic domain.

    Nonuniform transforms are computed on the host with finufft and called from
    jitted code through ``jax.pure_callback``; uniform transforms are plain
    ``jax.numpy.fft`` calls. Spectra exchanged with the nonuniform transforms are
    *centred*: index ``G//2 + j`` holds mode ``j`` for ``j = -G//2 .. G//2-1``,
    with wavenumber ``k_j = 2*pi*j/length``.

    The finufft plans are created once per transform and reused every call, so
    a transform object should live for the whole run. It is hashable by
    identity and is meant to be passed to jitted functions as a static argument.

    Args:
        number_grid_points (int): Number of Fourier modes G (even).
        length (float): Length of the periodic domain.
        order (int): Interpolation order of accuracy (finufft tolerance 10**-order).
        nthreads (int, optional): finufft thread count; None lets finufft decide.
    """

    def __init__(self, number_grid_points, length, order=5, nthreads=None):
        self.number_grid_points = int(number_grid_points)
        self.length = float(length)
        self.order = int(order)
        self.tolerance = tolerance_from_order(order)

        options = {} if nthreads is None else {"nthreads": nthreads}
        # Deposit: sum_i w_i exp(-i k x_i)
        self._type1 = finufft.Plan(1, (self.number_grid_points,), eps=self.tolerance,
                                   isign=-1, modeord=0, **options)
        # Interpolation: sum_k f_k exp(+i k x_i)
        self._type2 = finufft.Plan(2, (self.number_grid_points,), eps=self.tolerance,
                                   isign=1, modeord=0, **options)

    def __repr__(self):
        return (f"FinufftTransform(number_grid_points={self.number_grid_points}, "
                f"length={self.length}, order={self.order})")

    def _points(self, positions):
        # finufft works on [-3pi, 3pi); [0, L) maps onto [0, 2pi)
        return 2 * np.pi * np.array(positions, dtype=np.float64) / self.length

    def _execute_type1(self, positions, weights):
        self._type1.setpts(self._points(positions))
        return self._type1.execute(np.array(weights, dtype=np.complex128))

    def _execute_type2(self, spectrum, positions):
        self._type2.setpts(self._points(positions))
        return self._type2.execute(np.array(spectrum, dtype=np.complex128))

    def forward_nonuniform(self, positions, weights=None):
        """
        Deposit weighted particles into centred Fourier modes.

        Args:
            positions (array): Particle positions in [0, length), shape (N,).
            weights (array, optional): Real or complex weights, shape (N,). Unit weights if None.

        Returns:
            array: Centred complex modes, shape (G,).
        """
        if weights is None:
            weights = jnp.ones(positions.shape, dtype=jnp.complex128)
        result_shape = jax.ShapeDtypeStruct((self.number_grid_points,), jnp.complex128)
        return jax.pure_callback(self._execute_type1, result_shape,
                                 positions, jnp.asarray(weights, dtype=jnp.complex128))

    def inverse_nonuniform(self, spectrum, positions):
        """
        Evaluate a centred two-sided spectrum at particle positions.

        Args:
            spectrum (array): Centred complex modes, shape (G,).
            positions (array): Particle positions in [0, length), shape (N,).

        Returns:
            array: Complex values at the particles, shape (N,).
        """
        result_shape = jax.ShapeDtypeStruct(positions.shape, jnp.complex128)
        return jax.pure_callback(self._execute_type2, result_shape,
                                 jnp.asarray(spectrum, dtype=jnp.complex128), positions)

    def uniform_fft(self, values):
        """Unnormalised real-to-complex FFT, returns G//2 + 1 coefficients."""
        return jnp.fft.rfft(values)

    def uniform_inverse_fft(self, coefficients, n=None):
        """Unnormalised complex-to-real inverse FFT (FFTW c2r convention)."""
        n = self.number_grid_points if n is None else n
        return n * jnp.fft.irfft(coefficients, n=n)
