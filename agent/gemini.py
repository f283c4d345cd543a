"""Gemini-powered intent parsing and scan result summaries."""

import json
import logging
import time
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional

import google.generativeai as genai

from secret_scanner.errors import GeminiError
from secret_scanner.models import Finding

logger = logging.getLogger(__name__)

MAX_RETRIES = 3
RETRY_DELAY = 60
MAX_OUTPUT_TOKENS = 2048

ACTIONS = ("start_scan", "continue_scan", "status", "help")


@dataclass(frozen=True)
class ScanCommand:
    action: str
    scan_mode: str = "quick"
    repo_url: Optional[str] = None


def build_intent_prompt(message: str, history: Iterable[Mapping[str, str]] = ()) -> str:
    history_context = "\n".join(
        f"{m.get('role', 'user')}: {m.get('content', '')}" for m in history
    )
    return f"""Parse this user message and respond ONLY with valid JSON, nothing else.

Conversation history:
{history_context}

User message: "{message}"

Respond with this exact JSON structure:
{{
  "scan_mode": "quick",
  "repo_url": "https://github.com/octocat/Hello-World",
  "action": "start_scan"
}}

Rules:
- scan_mode: "quick", "running", or "deep"
- repo_url: full GitHub URL or null
- action: "start_scan", "continue_scan", "status", or "help"

JSON only, no markdown, no explanation:"""


def build_summary_prompt(
    findings: List[Finding], repo_url: str, scan_mode: str, commit_count: int
) -> str:
    if findings:
        findings_summary = "\n".join(
            f"- {f.secret_type} ({f.severity.value}) in {f.file_path} at line {f.line_number}"
            for f in findings
        )
    else:
        findings_summary = "No secrets found."

    return f"""You are a helpful GitHub security assistant. Generate a conversational response about the scan results.

Scan info:
- Repository: {repo_url}
- Scan mode: {scan_mode}
- Commits scanned: {commit_count}
- Secrets found: {len(findings)}

Findings:
{findings_summary}

Generate a friendly, clear response that:
1. Summarizes what was scanned
2. Reports findings with severity
3. Provides actionable recommendations
4. Uses a conversational tone

Keep it concise but informative."""


def extract_json_text(text: str) -> str:
    """Strip markdown code fences around a JSON payload."""
    text = text.strip()
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0].strip()
    elif "```" in text:
        text = text.split("```")[1].split("```")[0].strip()
    return text


class GeminiClient:
    def __init__(self, api_key: str, model_name: str = "gemini-2.0-flash", model=None):
        if model is None:
            genai.configure(api_key=api_key)
            model = genai.GenerativeModel(model_name)
        self.model = model
        self.model_name = model_name

    def _generate(self, prompt: str, temperature: float = 0.7) -> str:
        response = None
        for attempt in range(1, MAX_RETRIES + 1):
            try:
                response = self.model.generate_content(
                    prompt,
                    generation_config=genai.types.GenerationConfig(
                        max_output_tokens=MAX_OUTPUT_TOKENS,
                        temperature=temperature,
                        top_p=0.95,
                        top_k=40,
                    ),
                )
                break
            except Exception as e:
                if "429" in str(e) and attempt < MAX_RETRIES:
                    logger.warning(f"Rate limited (attempt {attempt}/{MAX_RETRIES}). Retrying in {RETRY_DELAY}s...")
                    time.sleep(RETRY_DELAY)
                    continue
                status = 429 if "429" in str(e) else None
                raise GeminiError(str(e), status=status) from e

        try:
            text = response.text
        except ValueError as e:
            # .text raises when the candidate was blocked or empty
            raise GeminiError(f"No content in Gemini response: {e}") from e
        if not text:
            raise GeminiError("No content in Gemini response")
        return text

    def parse_user_intent(
        self, message: str, history: Iterable[Mapping[str, str]] = ()
    ) -> ScanCommand:
        logger.info("Sending prompt to Gemini for intent parsing")
        raw = self._generate(build_intent_prompt(message, history), temperature=0.1)
        cleaned = extract_json_text(raw)
        logger.debug(f"Cleaned intent response: {cleaned}")

        try:
            data = json.loads(cleaned)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse Gemini response: {e}. Response was: {cleaned}")
            raise GeminiError(f"Failed to parse Gemini response as JSON: {e}") from e
        if not isinstance(data, dict) or not data.get("action"):
            raise GeminiError(f"Unexpected intent payload: {cleaned}")

        command = ScanCommand(
            action=str(data["action"]),
            scan_mode=str(data.get("scan_mode") or "quick"),
            repo_url=data.get("repo_url") or None,
        )
        logger.info(f"Parsed scan command: action={command.action}, mode={command.scan_mode}")
        return command

    def generate_response(
        self, findings: List[Finding], repo_url: str, scan_mode: str, commit_count: int
    ) -> str:
        logger.info("Generating final response with Gemini")
        return self._generate(build_summary_prompt(findings, repo_url, scan_mode, commit_count))
