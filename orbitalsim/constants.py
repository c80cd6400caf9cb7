"""Physical constants and simulation defaults.

Positions are kept in kilometres and velocities in km/s throughout the
package.  Forces are computed in newtons, so distances are converted to
metres before Newton's law is applied.
"""
import math

# --- Physical constants ---
G_REAL = 6.6743e-11  # m^3 kg^-1 s^-2
C_LIGHT = 299792458  # m/s
C_LIGHT_KMS = C_LIGHT / 1000.0  # km/s
KM_TO_M = 1000.0
KM_SQ_TO_M_SQ = KM_TO_M ** 2

EARTH_MASS = 5.972e24  # kg
MOON_MASS = 7.35e22  # kg
SOLAR_MASS = 1.989e30  # kg
EARTH_RADIUS_KM = 6371.0
MOON_RADIUS_KM = 1737.4
SOLAR_RADIUS_KM = 696340.0
AU_KM = 1.495978707e8

# --- Tick scheduling ---
ITERATION_SECONDS = 60.0  # Simulated seconds requested per tick
TIME_COMPRESSION = 1  # Ticks per frame

# --- Gravitational constant multiplier ---
# 0 uses G_REAL, negative values divide by |v|, positive values multiply.
GRAVITY_MULTIPLIER = 0

# --- Adaptive stepping ---
ANGLE_THRESHOLD_DEGREES = 5.0
COS_THRESHOLD = math.cos(math.radians(ANGLE_THRESHOLD_DEGREES))
MAX_SUBDIVISIONS = 4
BISECTION_STEPS = 15
# A minimum cosine <= -1 + REVERSAL_TOLERANCE is treated as a 180 degree flip
REVERSAL_TOLERANCE = 0.0
# Bisection brackets wider than this after BISECTION_STEPS are logged
DEGENERATE_TOLERANCE_SECONDS = 1.0

# --- Velocity cap ---
VELOCITY_CAP_FRACTION = 0.1
VELOCITY_CAP_KMS = VELOCITY_CAP_FRACTION * C_LIGHT_KMS

# --- Collisions ---
MERGE_ON_COLLISION = False
COLLISION_MASS_RETENTION = 0.9  # Fraction of mass kept, the rest is heat loss
