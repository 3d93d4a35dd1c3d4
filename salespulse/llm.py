from __future__ import annotations
import requests
from fastapi import HTTPException
from typing import Any, Dict, List, Optional
from .config import load_config

def chat_completion(
    messages: List[Dict[str, str]],
    system: Optional[str] = None,
    temperature: float | None = None,
    json_mode: bool = False,
) -> str:
    """One round-trip to an OpenAI-compatible /chat/completions endpoint."""
    cfg = load_config()
    url = cfg.llm.base_url.rstrip('/') + '/chat/completions'
    headers = {"Authorization": f"Bearer {cfg.llm.api_key}", "Content-Type": "application/json"}
    if system:
        messages = [{"role": "system", "content": system}] + messages
    payload: Dict[str, Any] = {
        "model": cfg.llm.model,
        "temperature": cfg.llm.temperature if temperature is None else temperature,
        "messages": messages,
    }
    if json_mode:
        payload["response_format"] = {"type": "json_object"}
    try:
        r = requests.post(url, headers=headers, json=payload, timeout=120)
    except requests.RequestException as e:
        raise HTTPException(status_code=502, detail=f"Upstream request failed: {e}")
    if not r.ok:
        raise HTTPException(status_code=r.status_code, detail=r.text)
    data = r.json()
    try:
        return data["choices"][0]["message"]["content"] or ""
    except (KeyError, IndexError, TypeError):
        raise HTTPException(status_code=500, detail=f"Unexpected response schema: {data}")
