"""Display formatting for USD amounts, percentages and addresses."""


def format_currency(amount: float) -> str:
    """
    Format a USD amount with two decimals and thousands separators.

    Examples:
        >>> format_currency(1245.321)
        '$1,245.32'
        >>> format_currency(-27)
        '-$27.00'
    """
    sign = "-" if amount < 0 and round(abs(amount), 2) != 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_percentage(value: float) -> str:
    """
    Format a value already expressed in percent.

    Example:
        >>> format_percentage(1.2345)
        '1.23%'
    """
    return f"{value:,.2f}%"


def format_number(value: float) -> str:
    """
    Format a number with separators and at most three decimals.

    Examples:
        >>> format_number(1234567)
        '1,234,567'
        >>> format_number(0.12345)
        '0.123'
    """
    text = f"{value:,.3f}".rstrip("0").rstrip(".")
    return "0" if text in ("-0", "") else text


def shorten_address(address: str) -> str:
    """
    Shorten a hex address for display.

    Example:
        >>> shorten_address("0x7a250d5630B4cF539739dF2C5dAcb4c659F2488D")
        '0x7a25...488D'
    """
    return f"{address[:6]}...{address[-4:]}"
