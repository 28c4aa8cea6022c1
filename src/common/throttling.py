from ninja_extra.throttling import AnonRateThrottle, UserRateThrottle


class AnonDefaultThrottle(AnonRateThrottle):
    rate = "60/min"


class UserDefaultThrottle(UserRateThrottle):
    rate = "100/min"


class WriteThrottle(UserRateThrottle):
    rate = "100/min"


class GateThrottle(UserRateThrottle):
    """Scanners at a busy entrance validate a ticket every few seconds."""

    rate = "600/min"


class MediaValidationThrottle(AnonRateThrottle):
    rate = "1000/min"
