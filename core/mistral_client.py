import os
from typing import Optional

from dotenv import load_dotenv
from mistralai import Mistral

from core.utils import float_env

load_dotenv()

_CHAT_MODEL = os.getenv("MISTRAL_CHAT_MODEL", "mistral-large-latest")
_TEMPERATURE = float_env("ANALYSIS_TEMPERATURE", 0.7)

client = Mistral(api_key=os.getenv("MISTRAL_API_KEY"))


def chat(system_prompt: str, prompt: str, schema: dict, schema_name: str = "analysis") -> Optional[str]:
    """
    Send a single-turn prompt to Mistral, constrained to `schema`,
    and return the output text (None when the model sent nothing).
    """
    response = client.chat.complete(
        model=_CHAT_MODEL,
        response_format={
            "type": "json_schema",
            "json_schema": {"name": schema_name, "schema": schema, "strict": True},
        },
        temperature=_TEMPERATURE,
        messages=[
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ],
    )
    if not response or not response.choices:
        return None
    content = response.choices[0].message.content
    if isinstance(content, str):
        return content.strip() or None
    return None
