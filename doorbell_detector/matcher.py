"""Target identity matching."""


def matches(observed, target: str) -> bool:
    """
    Case-insensitive comparison of an observed identifier with the target.

    Separators are not normalized: "AA-BB-..." does not match "aa:bb:...".
    Anything that is not a string never matches.
    """
    if not isinstance(observed, str) or not isinstance(target, str):
        return False
    return observed.casefold() == target.casefold()
