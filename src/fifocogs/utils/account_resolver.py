"""Utility for reading account references given on the command line."""


def parse_account_reference(account: str | int) -> int | str:
    """Return an account ID when the reference is numeric, else the name.

    Args:
        account: Account name, ID, or string representation of an ID

    Returns:
        Account ID (int) or account name (str)

    Raises:
        ValueError: If the reference is empty
    """
    if isinstance(account, int):
        return account

    account = account.strip()
    if not account:
        raise ValueError("Account name must not be empty")

    # Try to parse as integer (handles string IDs like "1")
    try:
        return int(account)
    except ValueError:
        # Not a number, treat as name
        return account
