"""Spring-mass-damper physics — analytical solver and stateful springs.

Springs are advanced with the exact closed-form solution of the damped
harmonic oscillator instead of numerical integration.  Because the
solution is exact, advancing by 100 ms once lands on the same state as
advancing ten times by 10 ms: live preview (variable frame deltas) and
export (fixed sample steps) produce the same motion.

All three damping regimes are handled:

* **Underdamped** (ζ < 1) — exponentially decaying sinusoid.
* **Critically damped** (ζ ≈ 1) — fastest settle without overshoot.
* **Overdamped** (ζ > 1) — sum of two real exponentials.

Positions passed to the solver are displacements relative to the target.
"""

import math
from typing import Optional, Tuple

from .config import MIN_MASS, MIN_TENSION, SpringConfig, spring_preset

# Half-width of the band around ζ = 1 that is treated as critical damping.
CRITICAL_EPSILON = 1e-6
# Root separation below which the overdamped form would divide by ~0.
DEGENERATE_ROOT_EPSILON = 1e-12


def _critical(x0: float, v0: float, alpha: float, t: float) -> Tuple[float, float]:
    decay = math.exp(-alpha * t)
    b = v0 + alpha * x0
    position = (x0 + b * t) * decay
    velocity = (b - alpha * (x0 + b * t)) * decay
    return position, velocity


def _underdamped(
    x0: float, v0: float, omega0: float, zeta: float, t: float,
) -> Tuple[float, float]:
    omega_d = omega0 * math.sqrt(1.0 - zeta * zeta)
    alpha = zeta * omega0
    decay = math.exp(-alpha * t)
    cos_w = math.cos(omega_d * t)
    sin_w = math.sin(omega_d * t)

    a = x0
    b = (v0 + alpha * x0) / omega_d
    position = decay * (a * cos_w + b * sin_w)
    velocity = decay * (
        (b * omega_d - a * alpha) * cos_w
        - (a * omega_d + b * alpha) * sin_w
    )
    return position, velocity


def _overdamped(
    x0: float, v0: float, omega0: float, zeta: float, t: float,
) -> Tuple[float, float]:
    root = omega0 * math.sqrt(max(zeta * zeta - 1.0, 0.0))
    s1 = -zeta * omega0 + root
    s2 = -zeta * omega0 - root
    denom = s1 - s2
    if abs(denom) < DEGENERATE_ROOT_EPSILON:
        # Roots coincide: the critically damped form is the limit.
        return _critical(x0, v0, zeta * omega0, t)

    c1 = (v0 - s2 * x0) / denom
    c2 = (s1 * x0 - v0) / denom
    e1 = math.exp(s1 * t)
    e2 = math.exp(s2 * t)
    return c1 * e1 + c2 * e2, c1 * s1 * e1 + c2 * s2 * e2


def solve_spring_1d(
    x0: float,
    v0: float,
    tension: float,
    friction: float,
    mass: float,
    t: float,
) -> Tuple[float, float]:
    """Advance a 1D spring by *t* seconds.

    Args:
        x0: initial displacement from the target.
        v0: initial velocity (units per second).
        tension: stiffness *k*.
        friction: damping coefficient *c*.
        mass: mass *m*.
        t: elapsed time in seconds.

    Returns ``(displacement, velocity)`` after *t*.  For ``t <= 0`` the
    inputs are returned unchanged.
    """
    if t <= 0:
        return x0, v0

    tension = max(tension, MIN_TENSION)
    mass = max(mass, MIN_MASS)
    friction = max(friction, 0.0)

    omega0 = math.sqrt(tension / mass)
    zeta = friction / (2.0 * math.sqrt(tension * mass))

    if zeta < 1.0 - CRITICAL_EPSILON:
        return _underdamped(x0, v0, omega0, zeta, t)
    if zeta > 1.0 + CRITICAL_EPSILON:
        return _overdamped(x0, v0, omega0, zeta, t)
    return _critical(x0, v0, omega0, t)


# ── 2D spring ───────────────────────────────────────────────────────


class SpringMassDamperSimulation:
    """2D spring used for camera and cursor positions.

    Each axis is solved independently relative to its target.  Position,
    velocity and target are ``(x, y)`` tuples in normalized units.
    """

    def __init__(self, config: Optional[SpringConfig] = None) -> None:
        config = config or spring_preset("cursor")
        self.tension = config.tension
        self.mass = config.mass
        self.friction = config.friction

        self.position: Tuple[float, float] = (0.5, 0.5)
        self.velocity: Tuple[float, float] = (0.0, 0.0)
        self.target: Tuple[float, float] = (0.5, 0.5)

    def configure(self, config: SpringConfig) -> None:
        """Swap physical parameters, keeping position and velocity."""
        self.tension = config.tension
        self.mass = config.mass
        self.friction = config.friction

    def set_position(self, x: float, y: float) -> None:
        self.position = (x, y)

    def set_velocity(self, vx: float, vy: float) -> None:
        self.velocity = (vx, vy)

    def set_target(self, x: float, y: float) -> None:
        self.target = (x, y)

    def run(self, duration_ms: float) -> None:
        """Advance the simulation by *duration_ms* milliseconds."""
        if duration_ms <= 0:
            return
        t = duration_ms / 1000.0
        tx, ty = self.target
        px, vx = solve_spring_1d(
            self.position[0] - tx, self.velocity[0],
            self.tension, self.friction, self.mass, t,
        )
        py, vy = solve_spring_1d(
            self.position[1] - ty, self.velocity[1],
            self.tension, self.friction, self.mass, t,
        )
        self.position = (tx + px, ty + py)
        self.velocity = (vx, vy)

    def is_settled(self, threshold: float = 0.0001) -> bool:
        """True when both displacement and velocity are below *threshold*."""
        dx = abs(self.position[0] - self.target[0])
        dy = abs(self.position[1] - self.target[1])
        return (
            dx < threshold and dy < threshold
            and abs(self.velocity[0]) < threshold
            and abs(self.velocity[1]) < threshold
        )

    def clone(self) -> "SpringMassDamperSimulation":
        sim = SpringMassDamperSimulation(
            SpringConfig(tension=self.tension, mass=self.mass, friction=self.friction)
        )
        sim.position = self.position
        sim.velocity = self.velocity
        sim.target = self.target
        return sim


# ── 1D spring ───────────────────────────────────────────────────────


class Spring1D:
    """Scalar spring for zoom scale, opacity and similar values."""

    def __init__(self, config: Optional[SpringConfig] = None, initial: float = 1.0) -> None:
        config = config or spring_preset("zoom")
        self.tension = config.tension
        self.mass = config.mass
        self.friction = config.friction

        self.value = initial
        self.velocity = 0.0
        self.target = initial

    def configure(self, config: SpringConfig) -> None:
        self.tension = config.tension
        self.mass = config.mass
        self.friction = config.friction

    def set_target(self, target: float) -> None:
        self.target = target

    def set_value(self, value: float) -> None:
        """Jump to *value* and drop any velocity."""
        self.value = value
        self.velocity = 0.0

    # Alias matching the 2D spring's vocabulary.
    set_position = set_value

    def set_velocity(self, velocity: float) -> None:
        self.velocity = velocity

    def run(self, duration_ms: float) -> None:
        if duration_ms <= 0:
            return
        displacement, self.velocity = solve_spring_1d(
            self.value - self.target, self.velocity,
            self.tension, self.friction, self.mass, duration_ms / 1000.0,
        )
        self.value = self.target + displacement

    def is_settled(self, threshold: float = 0.001) -> bool:
        return abs(self.value - self.target) < threshold and abs(self.velocity) < threshold


# ── Spring easing ───────────────────────────────────────────────────


def spring_ease_in(t: float, config: Optional[SpringConfig] = None) -> float:
    """Spring-shaped progress from 0 to 1 over normalized *t*.

    The spring starts one unit below its target at rest; *t* is fed to the
    solver as seconds, so the preset's stiffness sets the curve's shape.
    Returns exactly 0 for ``t <= 0`` and 1 for ``t >= 1``.
    """
    if t <= 0:
        return 0.0
    if t >= 1:
        return 1.0
    config = config or spring_preset("zoom")
    displacement, _ = solve_spring_1d(-1.0, 0.0, config.tension, config.friction, config.mass, t)
    return 1.0 + displacement


def spring_ease_out(t: float, config: Optional[SpringConfig] = None) -> float:
    """Spring-shaped decay from 1 to 0 over normalized *t*."""
    if t <= 0:
        return 1.0
    if t >= 1:
        return 0.0
    config = config or spring_preset("zoom")
    displacement, _ = solve_spring_1d(1.0, 0.0, config.tension, config.friction, config.mass, t)
    return displacement
