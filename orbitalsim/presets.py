"""Named initial configurations.

Positions are in km, velocities in km/s, masses in kg and radii in km.
"""
from . import constants as C

_MOON_DISTANCE_KM = 384400.0
_MOON_SPEED_KMS = 1.022
_EARTH_SPEED_KMS = 29.78

PRESETS = {
    "Earth & Moon": [
        {
            "name": "Earth",
            "mass": C.EARTH_MASS,
            "pos": [0.0, 0.0, 0.0],
            "vel": [0.0, 0.0, 0.0],
            "radius": C.EARTH_RADIUS_KM,
        },
        {
            "name": "Moon",
            "mass": C.MOON_MASS,
            "pos": [_MOON_DISTANCE_KM, 0.0, 0.0],
            "vel": [0.0, _MOON_SPEED_KMS, 0.0],
            "radius": C.MOON_RADIUS_KM,
        },
    ],
    "Sun, Earth & Moon": [
        {
            "name": "Sun",
            "mass": C.SOLAR_MASS,
            "pos": [0.0, 0.0, 0.0],
            "vel": [0.0, 0.0, 0.0],
            "radius": C.SOLAR_RADIUS_KM,
        },
        {
            "name": "Earth",
            "mass": C.EARTH_MASS,
            "pos": [C.AU_KM, 0.0, 0.0],
            "vel": [0.0, _EARTH_SPEED_KMS, 0.0],
            "radius": C.EARTH_RADIUS_KM,
        },
        {
            "name": "Moon",
            "mass": C.MOON_MASS,
            "pos": [C.AU_KM + _MOON_DISTANCE_KM, 0.0, 0.0],
            "vel": [0.0, _EARTH_SPEED_KMS + _MOON_SPEED_KMS, 0.0],
            "radius": C.MOON_RADIUS_KM,
        },
    ],
    # Two small bodies approaching each other along the x axis
    "Head-on": [
        {
            "name": "West",
            "mass": 1.0e20,
            "pos": [0.0, 0.0, 0.0],
            "vel": [10.0, 0.0, 0.0],
            "radius": 1.0,
        },
        {
            "name": "East",
            "mass": 1.0e20,
            "pos": [1000.0, 0.0, 0.0],
            "vel": [-8.0, 0.0, 0.0],
            "radius": 1.0,
        },
    ],
}
