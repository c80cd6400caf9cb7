"""Utility helpers for unit display."""

from . import constants as C


def mass_to_display(mass_kg: float) -> str:
    if mass_kg == 0:
        return "0 kg"
    if mass_kg >= 0.1 * C.SOLAR_MASS:
        return f"{mass_kg/C.SOLAR_MASS:.2f} M☉"
    if mass_kg >= 0.1 * C.EARTH_MASS:
        return f"{mass_kg/C.EARTH_MASS:.2f} M⊕"
    return f"{mass_kg:.2e} kg"


def distance_to_display(dist_km: float) -> str:
    if dist_km == 0:
        return "0 km"
    if abs(dist_km) >= 0.1 * C.AU_KM:
        return f"{dist_km/C.AU_KM:.2f} AU"
    if abs(dist_km) >= 1e3:
        return f"{dist_km/1e3:.2f} Mm"
    if abs(dist_km) >= 1:
        return f"{dist_km:.2f} km"
    return f"{dist_km * C.KM_TO_M:.1f} m"


def speed_to_display(speed_kms: float) -> str:
    if speed_kms == 0:
        return "0 km/s"
    if abs(speed_kms) >= 0.01 * C.C_LIGHT_KMS:
        return f"{speed_kms/C.C_LIGHT_KMS:.3f} c"
    if abs(speed_kms) >= 1:
        return f"{speed_kms:.2f} km/s"
    return f"{speed_kms * C.KM_TO_M:.1f} m/s"


def time_to_display(seconds: float) -> str:
    if seconds < 0:
        return "N/A"
    if seconds == 0:
        return "0 sec"
    years = seconds / 31536000
    if years >= 1:
        return f"{years:.1f} years"
    days = seconds / 86400
    if days >= 1:
        return f"{days:.1f} days"
    hours = seconds / 3600
    if hours >= 1:
        return f"{hours:.1f} hrs"
    minutes = seconds / 60
    if minutes >= 1:
        return f"{minutes:.1f} min"
    return f"{seconds:.1f} sec"
