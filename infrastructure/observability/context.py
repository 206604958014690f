from contextvars import ContextVar, Token

# Identifier of the release cycle currently running, "-" outside of a cycle.
_cycle_id_ctx: ContextVar[str] = ContextVar("cycle_id", default="-")


def set_cycle_id(cycle_id: str) -> Token[str]:
    return _cycle_id_ctx.set(cycle_id)


def get_cycle_id() -> str:
    return _cycle_id_ctx.get()


def reset_cycle_id(token: Token[str]) -> None:
    _cycle_id_ctx.reset(token)
