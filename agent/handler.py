"""Conversational request handling for the scanner agent.

Requests arrive as JSON-RPC 2.0 ``message/send`` calls. The user's text is
pulled from the message parts, Gemini classifies it into an action, and the
action is dispatched to the scan orchestrator. Input problems and a missing
previous scan are answered with a normal chat message; collaborator and
storage failures surface as JSON-RPC errors.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from agent.gemini import GeminiClient
from agent.webhook import send_webhook_error, send_webhook_response
from secret_scanner.errors import (
    InvalidRepositoryURLError,
    InvalidRequestError,
    NoPreviousScanError,
    RepositoryNotFoundError,
    ScanError,
)
from secret_scanner.models import ScanMode, ScanState
from secret_scanner.orchestrator import ScanOrchestrator

logger = logging.getLogger(__name__)

INTERNAL_ERROR_CODE = -32603

HELP_MESSAGE = """I can help you scan GitHub repositories for exposed secrets!

Commands:
- "scan <repo-url>" - Quick scan (last 100 commits)
- "start running scan <repo-url>" - Begin incremental scanning
- "continue scan <repo-url>" - Continue previous running scan
- "deep scan <repo-url>" - Full history scan
- "status" - Check current scan states

I detect:
- AWS credentials
- API keys (OpenAI, Stripe, SendGrid, etc.)
- Database credentials
- OAuth tokens
- Private keys
- And more!

Just provide a GitHub repository URL and I'll get started!"""

FALLBACK_MESSAGE = (
    "I can help you scan GitHub repositories for exposed secrets. "
    "Try 'scan <repo-url>' or 'help' for more info."
)

# Data parts echo earlier agent replies; these prefixes mark them.
_ECHO_PREFIXES = ("<p>", "Scanning", "Here")


class MessagePart(BaseModel):
    model_config = ConfigDict(extra="allow")

    kind: str = "text"
    text: Optional[str] = None
    data: Optional[List[Any]] = None


class Message(BaseModel):
    model_config = ConfigDict(extra="allow")

    role: str = "user"
    parts: List[MessagePart] = Field(default_factory=list)


class PushNotificationConfig(BaseModel):
    model_config = ConfigDict(extra="allow")

    url: Optional[str] = None
    token: Optional[str] = None


class Configuration(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    blocking: bool = True
    push_notification_config: Optional[PushNotificationConfig] = Field(
        default=None, alias="pushNotificationConfig"
    )


class A2AParams(BaseModel):
    model_config = ConfigDict(extra="allow")

    message: Message
    configuration: Optional[Configuration] = None


class A2ARequest(BaseModel):
    model_config = ConfigDict(extra="allow")

    jsonrpc: str = "2.0"
    id: Union[str, int]
    method: str = ""
    params: A2AParams

    @property
    def is_blocking(self) -> bool:
        config = self.params.configuration
        return config.blocking if config else True

    @property
    def push_config(self) -> Optional[PushNotificationConfig]:
        config = self.params.configuration
        return config.push_notification_config if config else None


def extract_user_message(message: Message) -> str:
    for part in message.parts:
        if part.text is not None and part.text.strip():
            return part.text
        for item in part.data or []:
            if not isinstance(item, dict):
                continue
            text = item.get("text")
            if not isinstance(text, str):
                continue
            text = text.strip()
            if len(text) > 5 and not text.startswith(_ECHO_PREFIXES):
                return text
    raise InvalidRequestError("No valid user message found")


def build_result(request_id: Union[str, int], text: str) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "result": {
            "message": {
                "kind": "message",
                "role": "assistant",
                "parts": [{"kind": "text", "text": text}],
            }
        },
    }


def build_error(request_id: Union[str, int], details: str) -> Dict[str, Any]:
    return {
        "jsonrpc": "2.0",
        "id": request_id,
        "error": {
            "code": INTERNAL_ERROR_CODE,
            "message": "Internal error",
            "data": {"details": details},
        },
    }


def format_status(states: List[ScanState]) -> str:
    if not states:
        return "No active scans found."
    lines = ["Active scans:", ""]
    for state in states:
        lines.append(
            f"- {state.repo_url}: {state.total_commits_scanned} commits scanned, "
            f"{state.findings_count} findings"
        )
    return "\n".join(lines)


class AgentService:
    def __init__(self, orchestrator: ScanOrchestrator, generator: GeminiClient):
        self.orchestrator = orchestrator
        self.generator = generator

    def process_request(self, request: A2ARequest) -> Dict[str, Any]:
        user_message = extract_user_message(request.params.message)
        logger.info(f"Processing request: {user_message}")

        command = self.generator.parse_user_intent(user_message)

        if command.action == "start_scan":
            if command.repo_url:
                text = self._start_scan(command.repo_url, command.scan_mode)
            else:
                text = "Please provide a GitHub repository URL to scan."
        elif command.action == "continue_scan":
            if command.repo_url:
                text = self._continue_scan(command.repo_url)
            else:
                text = "Please specify which repository to continue scanning."
        elif command.action == "status":
            text = format_status(self.orchestrator.list_status())
        elif command.action == "help":
            text = HELP_MESSAGE
        else:
            text = FALLBACK_MESSAGE

        logger.info(f"Generated response text, length: {len(text)}")
        return build_result(request.id, text)

    def process_and_notify(self, request: A2ARequest, url: str, token: Optional[str]) -> None:
        try:
            response = self.process_request(request)
        except ScanError as e:
            logger.error(f"Request processing failed: {e}")
            send_webhook_error(url, token, str(e), str(request.id))
            return
        except Exception as e:
            logger.exception(f"Unexpected error processing request {request.id}")
            send_webhook_error(url, token, str(e), str(request.id))
            return
        parts = response["result"]["message"]["parts"]
        send_webhook_response(url, token, parts, str(request.id))

    def _start_scan(self, repo_url: str, scan_mode: str) -> str:
        mode = ScanMode.parse(scan_mode)
        logger.info(f"Starting {mode.value} scan for: {repo_url}")
        try:
            report = self.orchestrator.run_scan(repo_url, mode)
        except (InvalidRepositoryURLError, RepositoryNotFoundError) as e:
            return f"I couldn't start that scan: {e}. Please check the repository URL."

        return self.generator.generate_response(
            report.findings, repo_url, mode.value.lower(), report.commits_scanned
        )

    def _continue_scan(self, repo_url: str) -> str:
        try:
            report = self.orchestrator.continue_scan(repo_url)
        except InvalidRepositoryURLError as e:
            return f"I couldn't continue that scan: {e}. Please check the repository URL."
        except NoPreviousScanError:
            return (
                f"No previous scan found for {repo_url}. "
                "Start one with 'start running scan <repo-url>' first."
            )

        if report.up_to_date:
            return "No new commits to scan since last scan."
        return self.generator.generate_response(
            report.findings, repo_url, "running", report.commits_scanned
        )
