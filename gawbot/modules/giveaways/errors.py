class GiveawayError(Exception):
    "Base class for giveaway errors"


class InvalidDuration(GiveawayError, ValueError):
    "The duration string is malformed or not positive"

    def __init__(self, value: str):
        super().__init__(f"Invalid duration `{value}`, use a format like 30m, 2h, 1d or 1w")
        self.value = value


class InvalidWinnerCount(GiveawayError, ValueError):
    "The number of winners is out of bounds"

    def __init__(self, value: int, minimum: int, maximum: int):
        super().__init__(f"The number of winners must be between {minimum} and {maximum}, not {value}")
        self.value = value


class InvalidPrize(GiveawayError, ValueError):
    "The prize is empty"

    def __init__(self):
        super().__init__("The prize cannot be empty")


class GatewayUnavailable(GiveawayError):
    "Discord could not be reached, or the channel or message does not exist anymore"
