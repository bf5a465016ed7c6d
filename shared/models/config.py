from pydantic import BaseModel


class EnvConfig(BaseModel):
    """
    A single setting a client reads from the environment.

    Attributes:
        env_key (str): Key suffix; the client prefixes it with "<TYPE>_<ENGINE>_" (e.g. "BASE_URL" -> "EMBED_OPENAI_BASE_URL").
        val_type (str): One of "string", "number", "bool", "list".
        default (str | int | bool | list | None): Value used when the variable is unset. None marks the setting as mandatory.
        fallback_keys (list[str]): Shared variable names consulted when the prefixed key is unset (e.g. "OPENAI_API_KEY").
    """

    env_key: str
    val_type: str
    default: str | int | bool | list | None = None
    fallback_keys: list[str] = []
