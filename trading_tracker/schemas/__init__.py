from pydantic import ValidationError as PydanticValidationError


def first_error_message(exc: PydanticValidationError) -> str:
    """Readable message for the envelope, without pydantic's 'Value error, ' prefix."""
    errors = exc.errors()
    if not errors:
        return "invalid payload"
    err = errors[0]
    msg = str(err.get("msg", "invalid payload"))
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
    if loc and err.get("type") != "value_error":
        return f"{loc}: {msg}"
    return msg
