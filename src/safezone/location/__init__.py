from safezone.location.provider import LocationProvider, StaticLocationProvider, acquire_location

__all__ = ["LocationProvider", "StaticLocationProvider", "acquire_location"]
