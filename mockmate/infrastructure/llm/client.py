"""
Gemini REST client for LLM interactions.

Talks to the public Gemini API when an API key is configured, otherwise to
Vertex AI using google-auth credentials.
"""
import json
import logging
from typing import Optional, Dict, Any, List, Union

import requests
import google.auth
import google.auth.transport.requests
from google.oauth2 import service_account

from ...config import GEMINI_API_BASE, VERTEX_LOCATION, MODEL_NAME, LLM_TIMEOUT, MAX_OUTPUT_TOKENS

logger = logging.getLogger("llm_client")

Part = Dict[str, Any]


class GeminiRestClient:
    """REST-based client for Gemini models."""

    def __init__(self,
                 api_key: Optional[str] = None,
                 project: Optional[str] = None,
                 location: str = VERTEX_LOCATION,
                 model: str = MODEL_NAME,
                 credentials_json: Optional[str] = None,
                 timeout: int = LLM_TIMEOUT):
        self.api_key = api_key
        self.project = project
        self.location = location
        self.model = model
        self.credentials_json = credentials_json
        self.timeout = timeout
        self._token = None

    @property
    def is_configured(self) -> bool:
        """True when an API key or a Vertex project is available."""
        return bool(self.api_key or self.project)

    @property
    def endpoint(self) -> str:
        """generateContent URL for the configured backend."""
        if self.api_key:
            return f"{GEMINI_API_BASE}/models/{self.model}:generateContent"
        base_url = f"https://{self.location}-aiplatform.googleapis.com/v1"
        model_resource = f"projects/{self.project}/locations/{self.location}/publishers/google/models/{self.model}"
        return f"{base_url}/{model_resource}:generateContent"

    def _refresh_token(self):
        """Refresh the OAuth token for Vertex API calls."""
        if self.credentials_json:
            creds = service_account.Credentials.from_service_account_file(
                self.credentials_json,
                scopes=["https://www.googleapis.com/auth/cloud-platform"],
            )
        else:
            creds, _ = google.auth.default(scopes=["https://www.googleapis.com/auth/cloud-platform"])

        auth_req = google.auth.transport.requests.Request()
        creds.refresh(auth_req)
        self._token = creds.token

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-goog-api-key"] = self.api_key
        else:
            if not self._token:
                self._refresh_token()
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def generate_content(
        self,
        prompt: Union[str, List[Part]],
        temperature: float = 0.0,
        max_output_tokens: int = MAX_OUTPUT_TOKENS,
        response_mime_type: Optional[str] = None,
        response_schema: Optional[Dict[str, Any]] = None,
        stop_sequences: Optional[List[str]] = None,
    ) -> str:
        """
        Generate content using the generateContent REST API.

        Args:
            prompt: Plain prompt text, or a list of content parts
                (text and inlineData parts) sent as a single user turn
            temperature: Sampling temperature
            max_output_tokens: Output token limit
            response_mime_type: e.g. "application/json" for structured output
            response_schema: OpenAPI-style schema for structured output

        Returns:
            Text of the first candidate (empty string if the model sent none)
        """
        if not self.is_configured:
            raise RuntimeError("Gemini client has no API key or project configured")

        parts = [{"text": prompt}] if isinstance(prompt, str) else list(prompt)

        body: Dict[str, Any] = {
            "contents": [
                {
                    "role": "user",
                    "parts": parts,
                }
            ],
            "generationConfig": {
                "temperature": float(temperature),
                "maxOutputTokens": int(max_output_tokens),
            },
        }

        if response_mime_type:
            body["generationConfig"]["responseMimeType"] = response_mime_type
        if response_schema:
            body["generationConfig"]["responseSchema"] = response_schema
        if stop_sequences:
            body["generationConfig"]["stopSequences"] = list(stop_sequences)

        resp = requests.post(self.endpoint, headers=self._headers(), json=body, timeout=self.timeout)
        if resp.status_code >= 400:
            raise RuntimeError(f"Gemini REST error {resp.status_code}: {resp.text}")

        return self._parse_response_text(resp.json())

    def _parse_response_text(self, resp_json: Dict[str, Any]) -> str:
        """
        Parse response JSON to extract text content.
        Joins all text parts of the first candidate.
        """
        cands = resp_json.get("candidates") or []
        if cands and isinstance(cands[0], dict):
            content = cands[0].get("content") or {}
            parts = content.get("parts") or []
            texts = [p["text"] for p in parts if isinstance(p, dict) and isinstance(p.get("text"), str)]
            if texts:
                return "".join(texts)
            finish_reason = cands[0].get("finishReason")
            if finish_reason:
                logger.warning("Candidate carried no text (finishReason=%s)", finish_reason)

        if isinstance(resp_json.get("text"), str):
            return resp_json["text"]

        return ""

    def generate_json(self,
                      prompt: Union[str, List[Part]],
                      response_schema: Optional[Dict[str, Any]] = None,
                      temperature: float = 0.0) -> Dict[str, Any]:
        """
        Generate a JSON object with structured output, tolerating text around the object.
        """
        logger.debug("Sending JSON prompt to LLM...")

        try:
            text = self.generate_content(
                prompt,
                temperature=temperature,
                response_mime_type="application/json",
                response_schema=response_schema,
            )
        except Exception as e:
            logger.error("LLM request failed: %s", e)
            raise

        logger.debug("Raw LLM output: %s", repr(text))

        try:
            parsed = json.loads(text)
        except ValueError as e:
            logger.warning("json.loads failed: %s", e)
            # Try extracting JSON from text
            start = text.find("{")
            end = text.rfind("}")
            if start == -1 or end <= start:
                raise ValueError(f"LLM did not return valid JSON: {text}")
            try:
                parsed = json.loads(text[start:end + 1])
            except ValueError:
                raise ValueError(f"LLM did not return valid JSON: {text}")

        if not isinstance(parsed, dict):
            raise ValueError(f"LLM returned JSON that is not an object: {text}")
        return parsed
