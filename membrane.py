"""
Finite-difference membrane (drumhead) synthesis.

A membrane is advanced in time with an explicit, damped leapfrog scheme for the
2D wave equation, and one displacement value is read at a pickup point per step.
Two geometries are supported:

  - RectangularMembrane: Cartesian grid, zero displacement on the four edges
  - CircularMembrane: polar grid, zero displacement on the rim, a dedicated
    update for the pole (r = 0) and periodic wrap in the angular direction

Usage:
    drum = RectangularMembrane.default()
    drum.set_initial_condition()
    samples = drum.simulate()
"""

import math
import operator
from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np
import scipy.signal


class InvalidParameterError(ValueError):
    """A physical or numerical parameter cannot produce a usable solver."""


class NumericalInstabilityError(RuntimeError):
    """The displacement field blew up (non-finite or above the sanity bound)."""

    def __init__(self, step: int, value: float):
        super().__init__(f"Numerical instability at step {step}: max |u| = {value}")
        self.step = step
        self.value = value


def _require_positive(**values: float):
    for name, value in values.items():
        if not value > 0:
            raise InvalidParameterError(f"{name} must be positive, got {value}")


def _require_index(name: str, value) -> int:
    """Grid sizes and cell indices must be integers (a float 64.0 is rejected)."""
    try:
        return operator.index(value)
    except TypeError:
        raise InvalidParameterError(f"{name} must be an integer, got {value!r}") from None


# =============================================================================
# Stability
# =============================================================================

class StabilityPolicy:
    """CFL gate for the explicit update.

    The CFL number is c * dt / h. Above the threshold the leapfrog recurrence
    amplifies high spatial frequencies every step and the output diverges.
    """

    def __init__(self, threshold: float = 0.25):
        _require_positive(threshold=threshold)
        self.threshold = threshold

    @staticmethod
    def courant(c: float, dt: float, h: float) -> float:
        return c * dt / h

    def is_stable(self, c: float, dt: float, h: float) -> bool:
        return self.courant(c, dt, h) <= self.threshold

    def validate(self, c: float, dt: float, h: float) -> float:
        """Check the CFL condition.

        Args:
            c: Wave speed
            dt: Time step
            h: Tightest spatial step of the grid

        Returns:
            The CFL number

        Raises:
            InvalidParameterError: if the CFL number exceeds the threshold
        """
        _require_positive(c=c, dt=dt, h=h)
        courant = self.courant(c, dt, h)
        if courant > self.threshold:
            raise InvalidParameterError(
                f"CFL condition violated: c*dt/h = {courant:.4f} > {self.threshold} "
                f"(c={c}, dt={dt}, h={h})"
            )
        return courant


class SimulationConfig:
    """Stores the rendering and numerical settings shared by all solvers."""

    def __init__(self, sample_rate: float = 44100, duration: float = 2.0,
                 max_amplitude: float = 1e6, check_every: int = 1,
                 stability: Optional[StabilityPolicy] = None,
                 strike_amplitude: float = 0.1, strike_spread: float = 0.01):
        """Initialize configuration.

        Args:
            sample_rate: Output samples per second (one sample per step)
            duration: Default simulation duration (s)
            max_amplitude: Sanity bound on |u|; exceeding it is an instability
            check_every: Check the field for instability every N steps (0 disables)
            stability: CFL policy (default threshold 0.25)
            strike_amplitude: Default Gaussian strike amplitude
            strike_spread: Default Gaussian strike spread (alpha)
        """
        _require_positive(sample_rate=sample_rate, duration=duration,
                          max_amplitude=max_amplitude, strike_amplitude=strike_amplitude,
                          strike_spread=strike_spread)
        if check_every < 0:
            raise InvalidParameterError(f"check_every must be >= 0, got {check_every}")
        self.sample_rate = sample_rate
        self.duration = duration
        self.max_amplitude = max_amplitude
        self.check_every = int(check_every)
        self.stability = stability if stability is not None else StabilityPolicy()
        self.strike_amplitude = strike_amplitude
        self.strike_spread = strike_spread

    def num_samples(self, duration: Optional[float] = None) -> int:
        if duration is None:
            duration = self.duration
        return int(round(self.sample_rate * duration))


# =============================================================================
# Grid geometry and state
# =============================================================================

def wrap(j, n: int):
    """Periodic index: angle n is angle 0. Works on ints and integer arrays."""
    return np.mod(j, n) if isinstance(j, np.ndarray) else j % n


class CartesianGeometry:
    """(x, y) grid with unit cell indices; the first/last rows and columns are the rim."""

    def __init__(self, nx: int, ny: int, spacing: float = 1.0):
        nx = _require_index("nx", nx)
        ny = _require_index("ny", ny)
        if nx < 3 or ny < 3:
            raise InvalidParameterError(f"Grid must be at least 3x3 to have an interior, got {nx}x{ny}")
        _require_positive(spacing=spacing)
        self.nx = nx
        self.ny = ny
        self.spacing = spacing
        self.shape = (nx, ny)

    def rim_mask(self) -> np.ndarray:
        mask = np.zeros(self.shape, dtype=bool)
        mask[0, :] = mask[-1, :] = True
        mask[:, 0] = mask[:, -1] = True
        return mask

    def default_center(self) -> Tuple[float, float]:
        return (self.nx // 2, self.ny // 2)

    def squared_cell_distance(self, center: Tuple[float, float]) -> np.ndarray:
        """Squared distance of every cell from center, in grid cells."""
        i = np.arange(self.nx)[:, None]
        j = np.arange(self.ny)[None, :]
        return (i - center[0]) ** 2 + (j - center[1]) ** 2

    def normalized_coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        """Cell positions mapped to [-1, 1] x [-1, 1]."""
        return np.meshgrid(np.linspace(-1.0, 1.0, self.nx), np.linspace(-1.0, 1.0, self.ny),
                           indexing='ij')

    def enforce(self, field: np.ndarray):
        """Apply the boundary constraints to a field in place."""
        field[self.rim_mask()] = 0.0


class PolarGeometry:
    """(r, theta) grid. Row 0 is the pole, the last row is the rim.

    Physical radius of row i is i * dr, physical angle of column j is j * dtheta.
    """

    def __init__(self, nr: int, ntheta: int, dr: float, dtheta: float):
        nr = _require_index("nr", nr)
        ntheta = _require_index("ntheta", ntheta)
        if nr < 3:
            raise InvalidParameterError(f"nr must be >= 3 (pole, interior ring, rim), got {nr}")
        if ntheta < 3:
            raise InvalidParameterError(f"ntheta must be >= 3, got {ntheta}")
        _require_positive(dr=dr, dtheta=dtheta)
        self.nr = nr
        self.ntheta = ntheta
        self.dr = dr
        self.dtheta = dtheta
        self.shape = (nr, ntheta)
        self.radius = (nr - 1) * dr

        self.radii = np.arange(nr) * dr
        self.angles = np.arange(ntheta) * dtheta

        # Angular neighbours with periodic wrap
        columns = np.arange(ntheta)
        self.theta_plus = wrap(columns + 1, ntheta)
        self.theta_minus = wrap(columns - 1, ntheta)

    @property
    def tightest_spacing(self) -> float:
        # Arc length between neighbours on the first ring
        return min(self.dr, self.dr * self.dtheta)

    def rim_mask(self) -> np.ndarray:
        mask = np.zeros(self.shape, dtype=bool)
        mask[-1, :] = True
        return mask

    def default_center(self) -> Tuple[float, float]:
        return (0.0, 0.0)

    def squared_cell_distance(self, center: Tuple[float, float]) -> np.ndarray:
        """Squared distance of every cell from center (r, theta), in units of dr."""
        r0, theta0 = center
        x = self.radii[:, None] * np.cos(self.angles)[None, :]
        y = self.radii[:, None] * np.sin(self.angles)[None, :]
        x0 = r0 * math.cos(theta0)
        y0 = r0 * math.sin(theta0)
        return ((x - x0) ** 2 + (y - y0) ** 2) / (self.dr * self.dr)

    def normalized_coordinates(self) -> Tuple[np.ndarray, np.ndarray]:
        """Cell positions on the unit disc."""
        r = self.radii[:, None] / self.radius
        return r * np.cos(self.angles)[None, :], r * np.sin(self.angles)[None, :]

    def enforce(self, field: np.ndarray):
        """Zero the rim and give the pole a single shared value."""
        field[0, :] = field[0, :].mean()
        field[-1, :] = 0.0


class GridState:
    """Three displacement slices (prev, curr, next) for leapfrog integration.

    The slices live in one (3, n1, n2) array and never change shape. Rotation
    cycles an index instead of moving data, so a step ends with a single
    integer assignment.
    """

    def __init__(self, shape: Tuple[int, int]):
        if len(shape) != 2:
            raise InvalidParameterError(f"Grid must be 2D, got shape {shape}")
        self.shape = tuple(int(n) for n in shape)
        self._slices = np.zeros((3,) + self.shape)
        self._curr = 1

    @property
    def prev(self) -> np.ndarray:
        return self._slices[(self._curr - 1) % 3]

    @property
    def curr(self) -> np.ndarray:
        return self._slices[self._curr]

    @property
    def next(self) -> np.ndarray:
        return self._slices[(self._curr + 1) % 3]

    def rotate(self):
        """prev <- curr, curr <- next. The old prev becomes scratch for the next step."""
        self._curr = (self._curr + 1) % 3

    def seed(self, field: np.ndarray):
        """Set curr and prev to field (zero initial velocity)."""
        field = np.asarray(field, dtype=float)
        if field.shape != self.shape:
            raise InvalidParameterError(f"Field shape {field.shape} does not match grid {self.shape}")
        self.curr[...] = field
        self.prev[...] = field
        self.next[...] = 0.0

    def clear(self):
        self._slices[...] = 0.0


# =============================================================================
# Strikes (initial conditions)
# =============================================================================

class Strike:
    """Base class for initial displacements."""

    def displacement(self, geometry) -> np.ndarray:
        """Build the displacement field for a geometry.

        Args:
            geometry: CartesianGeometry or PolarGeometry

        Returns:
            Array with geometry.shape
        """
        raise NotImplementedError


class GaussianStrike(Strike):
    """Radially symmetric Gaussian pulse: A * exp(-alpha * d^2).

    d is measured in grid cells (Cartesian) or in units of dr (polar).
    """

    def __init__(self, amplitude: float = 0.1, spread: float = 0.01,
                 center: Optional[Tuple[float, float]] = None):
        """Initialize Gaussian strike.

        Args:
            amplitude: Peak displacement A
            spread: Decay rate alpha
            center: (i, j) cell for Cartesian grids, (r, theta) for polar grids.
                If None, the grid center (Cartesian) or the pole (polar).
        """
        _require_positive(spread=spread)
        self.amplitude = amplitude
        self.spread = spread
        self.center = center

    def displacement(self, geometry) -> np.ndarray:
        center = self.center if self.center is not None else geometry.default_center()
        return self.amplitude * np.exp(-self.spread * geometry.squared_cell_distance(center))


class FieldStrike(Strike):
    """User-specified displacement field."""

    def __init__(self, field: np.ndarray):
        self.field = np.array(field, dtype=float)

    def displacement(self, geometry) -> np.ndarray:
        if self.field.shape != geometry.shape:
            raise InvalidParameterError(
                f"Strike field shape {self.field.shape} does not match grid {geometry.shape}"
            )
        return self.field.copy()


# =============================================================================
# Solvers
# =============================================================================

class MembraneSolver:
    """Base class for membrane solvers.

    Subclasses provide self.geometry and implement _update(curr, prev, nxt),
    which writes every non-rim cell of nxt.
    """

    def __init__(self, geometry, wave_speed: float, damping: float, dt: Optional[float],
                 duration: Optional[float], config: Optional[SimulationConfig]):
        self.config = config if config is not None else SimulationConfig()
        if dt is None:
            dt = 1.0 / self.config.sample_rate
        if duration is None:
            duration = self.config.duration
        _require_positive(wave_speed=wave_speed, dt=dt, duration=duration)
        if damping < 0:
            raise InvalidParameterError(f"damping must be >= 0, got {damping}")

        self.geometry = geometry
        self.wave_speed = wave_speed
        self.damping = damping
        self.dt = dt
        self.duration = duration
        self.num_samples = self.config.num_samples(duration)

        self.courant = self.config.stability.validate(wave_speed, dt, self._spacing())

        # Damped leapfrog: u+ = K * (c^2 dt^2 lap(u) + 2u) - K * (1 - gamma) * u-
        self._gamma = damping * dt / 2.0
        self._k = 1.0 / (1.0 + self._gamma)
        self._rim = geometry.rim_mask()

        self.state = GridState(geometry.shape)
        self.step_count = 0

    def _spacing(self) -> float:
        raise NotImplementedError

    def _update(self, curr: np.ndarray, prev: np.ndarray, nxt: np.ndarray):
        raise NotImplementedError

    def default_pickup(self) -> Tuple[int, int]:
        raise NotImplementedError

    def _leapfrog(self, laplacian_term, curr, prev):
        return self._k * (laplacian_term + 2.0 * curr) - self._k * (1.0 - self._gamma) * prev

    def apply_dirichlet(self, field: np.ndarray):
        """Pin the rim to zero displacement."""
        field[self._rim] = 0.0

    def set_initial_condition(self, strike: Optional[Strike] = None):
        """Seed curr and prev with a strike (default: centered Gaussian).

        The rim is zeroed after seeding regardless of the strike's values.
        """
        if strike is None:
            strike = GaussianStrike(self.config.strike_amplitude, self.config.strike_spread)
        field = strike.displacement(self.geometry)
        self.geometry.enforce(field)
        self.state.seed(field)
        self.step_count = 0

    def reset(self):
        self.state.clear()
        self.step_count = 0

    def step(self):
        """Perform one explicit update and rotate the buffers."""
        state = self.state
        nxt = state.next
        self._update(state.curr, state.prev, nxt)
        self.apply_dirichlet(nxt)

        check_every = self.config.check_every
        if check_every and self.step_count % check_every == 0:
            self._check_stability(nxt)

        state.rotate()
        self.step_count += 1

    def _check_stability(self, field: np.ndarray):
        peak = float(np.max(np.abs(field)))
        if not math.isfinite(peak) or peak > self.config.max_amplitude:
            raise NumericalInstabilityError(self.step_count, peak)

    def read(self, i: int, j: int) -> float:
        return float(self.state.curr[i, j])

    def max_displacement(self) -> float:
        return float(np.max(np.abs(self.state.curr)))

    def simulate(self, num_samples: Optional[int] = None,
                 out: Optional[List[float]] = None) -> np.ndarray:
        """Run the simulation and record the default pickup.

        Args:
            num_samples: Number of steps/samples (default: round(sample_rate * duration))
            out: Optional list to extend with the samples

        Returns:
            Array of exactly num_samples samples
        """
        if num_samples is None:
            num_samples = self.num_samples
        samples = AudioRenderer(self).render(num_samples)
        if out is not None:
            out.extend(samples.tolist())
        return samples


# 5-point Laplacian in grid units
LAPLACIAN_STENCIL = np.array([[0.0, 1.0, 0.0],
                              [1.0, -4.0, 1.0],
                              [0.0, 1.0, 0.0]])


class RectangularMembrane(MembraneSolver):
    """Rectangular membrane with fixed (zero) edges."""

    def __init__(self, nx: int, ny: int, damping: float, wave_speed: float,
                 dt: Optional[float] = None, duration: Optional[float] = None,
                 spacing: float = 1.0, config: Optional[SimulationConfig] = None):
        """Initialize rectangular membrane.

        Args:
            nx: Cells in x (>= 3)
            ny: Cells in y (>= 3)
            damping: Damping coefficient (1/s), >= 0
            wave_speed: Wave speed c (spacing units per second)
            dt: Time step (s). Defaults to 1 / sample_rate.
            duration: Simulation duration (s). Defaults to config.duration.
            spacing: Grid spacing h (default: one grid unit)
            config: Shared simulation settings
        """
        geometry = CartesianGeometry(nx, ny, spacing)
        super().__init__(geometry, wave_speed, damping, dt, duration, config)
        self.nx = geometry.nx
        self.ny = geometry.ny
        # Stencil weight of the grid-unit Laplacian
        self.coefficient = self.courant

    @classmethod
    def default(cls, config: Optional[SimulationConfig] = None) -> 'RectangularMembrane':
        """128x128 plate with a fundamental near 117 Hz at 44.1 kHz."""
        return cls(128, 128, damping=10.0, wave_speed=10000.0, config=config)

    def _spacing(self) -> float:
        return self.geometry.spacing

    def _update(self, curr: np.ndarray, prev: np.ndarray, nxt: np.ndarray):
        laplacian = scipy.signal.correlate(curr, LAPLACIAN_STENCIL, mode='valid', method='direct')
        nxt[1:-1, 1:-1] = self._leapfrog(
            self.coefficient * laplacian,
            curr[1:-1, 1:-1],
            prev[1:-1, 1:-1],
        )

    def default_pickup(self) -> Tuple[int, int]:
        return (self.nx // 2, self.ny // 2)


def pole_laplacian(field: np.ndarray, dr: float) -> float:
    """Laplacian at r = 0 from the first ring.

    Limit of the polar Laplacian averaged over all angles:
    4 * (mean_j u[1, j] - u[0]) / dr^2
    """
    return 4.0 * (float(np.mean(field[1])) - float(field[0, 0])) / (dr * dr)


class CircularMembrane(MembraneSolver):
    """Circular membrane on a polar grid with a fixed rim."""

    def __init__(self, radius: float, tension: float, density: float, dt: Optional[float],
                 dr: float, dtheta: float, nr: int, ntheta: int,
                 damping: float = 0.0, duration: Optional[float] = None,
                 config: Optional[SimulationConfig] = None):
        """Initialize circular membrane.

        Args:
            radius: Membrane radius (m); must equal (nr - 1) * dr
            tension: Tension (N/m)
            density: Areal mass density (kg/m^2)
            dt: Time step (s). Defaults to 1 / sample_rate.
            dr: Radial step (m)
            dtheta: Angular step (rad); ntheta * dtheta must cover 2*pi
            nr: Radial samples including pole and rim (>= 3)
            ntheta: Angular samples (>= 3)
            damping: Damping coefficient (1/s), >= 0
            duration: Simulation duration (s). Defaults to config.duration.
            config: Shared simulation settings
        """
        _require_positive(radius=radius, tension=tension, density=density)
        geometry = PolarGeometry(nr, ntheta, dr, dtheta)
        if not math.isclose(geometry.radius, radius, rel_tol=1e-6):
            raise InvalidParameterError(
                f"radius {radius} does not match (nr - 1) * dr = {geometry.radius}"
            )
        if not math.isclose(ntheta * dtheta, 2.0 * math.pi, rel_tol=1e-6):
            raise InvalidParameterError(
                f"ntheta * dtheta = {ntheta * dtheta} must equal 2*pi for a periodic grid"
            )

        self.radius = radius
        self.tension = tension
        self.density = density
        self.dr = dr
        self.dtheta = dtheta
        self.nr = geometry.nr
        self.ntheta = geometry.ntheta
        super().__init__(geometry, math.sqrt(tension / density), damping, dt, duration, config)
        self._c2dt2 = (self.wave_speed * self.dt) ** 2

    @classmethod
    def from_grid(cls, radius: float, tension: float, density: float, dt: Optional[float],
                  nr: int, ntheta: int, **kwargs) -> 'CircularMembrane':
        """Build a membrane with dr and dtheta derived from the grid size."""
        nr = _require_index("nr", nr)
        ntheta = _require_index("ntheta", ntheta)
        if nr < 2 or ntheta < 1:
            raise InvalidParameterError(f"Invalid grid size nr={nr}, ntheta={ntheta}")
        return cls(radius, tension, density, dt, radius / (nr - 1), 2.0 * math.pi / ntheta,
                   nr, ntheta, **kwargs)

    @classmethod
    def default(cls, config: Optional[SimulationConfig] = None) -> 'CircularMembrane':
        """10 cm radius, c = 10 m/s drum (fundamental near 38 Hz) at 44.1 kHz."""
        return cls.from_grid(0.1, tension=10.0, density=0.1, dt=None, nr=21, ntheta=32,
                             damping=5.0, config=config)

    def _spacing(self) -> float:
        return self.geometry.tightest_spacing

    def _update(self, curr: np.ndarray, prev: np.ndarray, nxt: np.ndarray):
        self._update_interior(curr, prev, nxt)
        self._update_pole(curr, prev, nxt)

    def _update_interior(self, curr: np.ndarray, prev: np.ndarray, nxt: np.ndarray):
        """Centered differences for 0 < r < radius. r is never zero here."""
        geometry = self.geometry
        dr = geometry.dr
        r = geometry.radii[1:-1, None]

        u = curr[1:-1]
        outer = curr[2:]
        inner = curr[:-2]
        d2r = (outer - 2.0 * u + inner) / (dr * dr)
        d1r = (outer - inner) / (2.0 * dr * r)

        d2theta = (u[:, geometry.theta_plus] - 2.0 * u + u[:, geometry.theta_minus]) \
            / (r * r * geometry.dtheta * geometry.dtheta)

        nxt[1:-1] = self._leapfrog(self._c2dt2 * (d2r + d1r + d2theta), u, prev[1:-1])

    def _update_pole(self, curr: np.ndarray, prev: np.ndarray, nxt: np.ndarray):
        laplacian = pole_laplacian(curr, self.geometry.dr)
        nxt[0, :] = self._leapfrog(self._c2dt2 * laplacian, curr[0, 0], prev[0, 0])

    def default_pickup(self) -> Tuple[int, int]:
        return (0, 0)


# =============================================================================
# Pickups and rendering
# =============================================================================

class Pickup:
    """Virtual pickup reading the displacement at one grid cell."""

    def __init__(self, i: int, j: int, name: str = "pickup"):
        self.i = _require_index("pickup row", i)
        self.j = _require_index("pickup column", j)
        self.name = name
        self.recordings: List[float] = []
        self._solver: Optional[MembraneSolver] = None

    def attach(self, solver: MembraneSolver):
        """Attach to a solver and clear previous recordings.

        Raises:
            InvalidParameterError: if the cell is outside the solver's grid
        """
        n1, n2 = solver.state.shape
        if not (0 <= self.i < n1 and 0 <= self.j < n2):
            raise InvalidParameterError(
                f"Pickup '{self.name}' at ({self.i}, {self.j}) is outside grid {solver.state.shape}"
            )
        self._solver = solver
        self.recordings = []

    def record(self) -> float:
        if self._solver is None:
            raise RuntimeError("Pickup not attached to a solver. Call attach first.")
        value = self._solver.read(self.i, self.j)
        self.recordings.append(value)
        return value


class AudioRenderer:
    """Drives a solver step by step and samples its pickups after each step."""

    def __init__(self, solver: MembraneSolver, pickups: Optional[Sequence[Pickup]] = None):
        """Initialize renderer.

        Args:
            solver: Solver with an initial condition already set
            pickups: Pickups to record. Defaults to the solver's default pickup.
        """
        if pickups is None:
            i, j = solver.default_pickup()
            pickups = [Pickup(i, j)]
        if len(pickups) == 0:
            raise InvalidParameterError("At least one pickup is required")
        self.solver = solver
        self.pickups = list(pickups)
        for pickup in self.pickups:
            pickup.attach(solver)

    def _shape(self, samples: np.ndarray) -> np.ndarray:
        return samples[:, 0] if len(self.pickups) == 1 else samples

    def stream(self, num_samples: int, block_size: int = 1024,
               should_stop: Optional[Callable[[], bool]] = None) -> Iterator[np.ndarray]:
        """Yield blocks of samples.

        should_stop is polled between steps; a cancelled stream yields the
        partial block and ends.

        Yields:
            Arrays of shape (n,) for one pickup or (n, k) for k pickups
        """
        if num_samples < 0:
            raise InvalidParameterError(f"num_samples must be >= 0, got {num_samples}")
        if block_size < 1:
            raise InvalidParameterError(f"block_size must be >= 1, got {block_size}")

        solver = self.solver
        remaining = num_samples
        while remaining > 0:
            n = min(block_size, remaining)
            block = np.zeros((n, len(self.pickups)))
            for t in range(n):
                if should_stop is not None and should_stop():
                    if t > 0:
                        yield self._shape(block[:t])
                    return
                solver.step()
                for k, pickup in enumerate(self.pickups):
                    block[t, k] = pickup.record()
            remaining -= n
            yield self._shape(block)

    def render(self, num_samples: int,
               should_stop: Optional[Callable[[], bool]] = None) -> np.ndarray:
        """Run num_samples steps and return the recorded samples.

        Returns:
            Array of shape (num_samples,) for one pickup or (num_samples, k).
            Shorter if should_stop cancelled the run.
        """
        blocks = list(self.stream(num_samples, block_size=max(num_samples, 1),
                                  should_stop=should_stop))
        if not blocks:
            return self._shape(np.zeros((0, len(self.pickups))))
        return np.concatenate(blocks, axis=0)
