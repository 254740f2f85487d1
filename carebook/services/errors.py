class NotificationError(Exception):
    """Base class for notification failures"""

    pass


class NotificationNotFoundError(NotificationError):
    pass


class NotificationStateError(NotificationError):
    """Raised when an item is not in a state that allows the requested change"""

    pass


class DeliveryError(NotificationError):
    """Raised by a channel sender when it cannot deliver"""

    def __init__(self, channel: str, message: str):
        super().__init__(f"{channel}: {message}")
        self.channel = channel
        self.message = message
