"""
Client for the Work IQ agent.

Spawns ``workiq mcp`` and drives a single question through its MCP server
over newline-delimited JSON-RPC 2.0 on stdio::

    -> initialize (id 1)
    <- result.serverInfo
    -> tools/list (id 2)
    <- result.tools
    -> tools/call (id 3) {"name": <ask tool>, "arguments": {"question": ...}}
    <- result.content[*].text

One process per question; the process is always killed afterwards.
"""

import json
import queue
import subprocess
import threading
import time
from typing import Any, Dict, List, Optional

from loguru import logger

from meeting_prep.config import AgentConfig, get_config
from meeting_prep.errors import AgentProtocolError, AgentTimeout, AgentUnavailable

INITIALIZE_ID = 1
TOOLS_LIST_ID = 2
TOOLS_CALL_ID = 3

_EOF = object()


def select_ask_tool(tools: List[Dict[str, Any]]) -> Optional[str]:
    """Pick the question-answering tool: ``workiq_ask``, then ``ask``, then any ``*ask*``."""
    names = [t.get("name", "") for t in tools if isinstance(t, dict)]
    for preferred in ("workiq_ask", "ask"):
        if preferred in names:
            return preferred
    return next((n for n in names if "ask" in n), None)


def extract_answer_text(result: Any) -> str:
    """Join the text parts of a ``tools/call`` result."""
    content = result.get("content", result) if isinstance(result, dict) else result
    if isinstance(content, list):
        text = "\n".join(
            c.get("text", "") for c in content
            if isinstance(c, dict) and c.get("type") == "text"
        )
        return text or json.dumps(content)
    if isinstance(content, str):
        return content
    return json.dumps(content, indent=2)


class WorkIQClient:
    """Ask Work IQ natural-language questions through its MCP server."""

    def __init__(self, config: Optional[AgentConfig] = None):
        self.config = config or get_config().agent

    def _command(self) -> List[str]:
        return [self.config.command, *self.config.args]

    def _send(self, proc: subprocess.Popen, msg_id: int, method: str, params: Dict[str, Any]):
        payload = {"jsonrpc": "2.0", "id": msg_id, "method": method, "params": params}
        try:
            proc.stdin.write(json.dumps(payload) + "\n")
            proc.stdin.flush()
        except (BrokenPipeError, OSError) as e:
            raise AgentProtocolError("Work IQ closed its input", str(e)) from e

    @staticmethod
    def _pump(stream, lines: "queue.Queue"):
        for line in stream:
            lines.put(line)
        lines.put(_EOF)

    def _initialize_params(self) -> Dict[str, Any]:
        return {
            "protocolVersion": self.config.protocol_version,
            "capabilities": {},
            "clientInfo": {
                "name": self.config.client_name,
                "version": self.config.client_version,
            },
        }

    def ask(self, question: str, timeout: Optional[float] = None) -> str:
        """
        Send one question to Work IQ and return its text answer.

        Args:
            question: Natural-language question
            timeout: Seconds before the process is killed (defaults to query_timeout)

        Raises:
            AgentUnavailable: the process could not be started
            AgentTimeout: no answer before the deadline
            AgentProtocolError: error response, no ask tool, or early exit
        """
        timeout = timeout if timeout is not None else self.config.query_timeout
        preview = question if len(question) <= 120 else question[:120] + "..."
        logger.info(f"Work IQ query: {preview!r} (timeout {timeout:.0f}s)")

        try:
            proc = subprocess.Popen(
                self._command(),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                bufsize=1,
            )
        except OSError as e:
            logger.error(f"Failed to start workiq: {e}")
            raise AgentUnavailable("Failed to start workiq", str(e)) from e

        lines: "queue.Queue" = queue.Queue()
        threading.Thread(target=self._pump, args=(proc.stdout, lines), daemon=True).start()
        stderr_chunks: List[str] = []
        threading.Thread(
            target=lambda: stderr_chunks.extend(proc.stderr), daemon=True
        ).start()

        start = time.monotonic()
        deadline = start + timeout
        try:
            self._send(proc, INITIALIZE_ID, "initialize", self._initialize_params())
            tools_requested = False

            while True:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    logger.error(f"Work IQ timed out after {timeout:.0f}s")
                    raise AgentTimeout("WorkIQ query timed out", f"No answer within {timeout:.0f}s")
                try:
                    line = lines.get(timeout=min(remaining, 5.0))
                except queue.Empty:
                    continue

                if line is _EOF:
                    details = "".join(stderr_chunks).strip() or f"exit code {proc.poll()}"
                    logger.error(f"workiq exited before answering: {details}")
                    raise AgentProtocolError("workiq exited before answering", details)

                line = line.strip()
                if not line:
                    continue
                try:
                    msg = json.loads(line)
                except json.JSONDecodeError:
                    logger.debug(f"Ignoring non-JSON output: {line[:200]}")
                    continue
                if not isinstance(msg, dict):
                    continue

                if msg.get("error"):
                    error = msg["error"]
                    message = error.get("message") if isinstance(error, dict) else None
                    logger.error(f"Work IQ error: {error}")
                    raise AgentProtocolError(message or "Work IQ returned an error", json.dumps(error))

                result = msg.get("result")
                if result is None:
                    continue

                if isinstance(result, dict) and result.get("serverInfo") and not tools_requested:
                    tools_requested = True
                    self._send(proc, TOOLS_LIST_ID, "tools/list", {})

                elif msg.get("id") == TOOLS_LIST_ID and isinstance(result, dict) and "tools" in result:
                    tools = result.get("tools") or []
                    tool = select_ask_tool(tools)
                    if tool is None:
                        available = ", ".join(t.get("name", "?") for t in tools if isinstance(t, dict))
                        raise AgentProtocolError("WorkIQ ask tool not found", f"Available: {available}")
                    logger.debug(f"Using Work IQ tool: {tool}")
                    self._send(proc, TOOLS_CALL_ID, "tools/call", {
                        "name": tool,
                        "arguments": {"question": question},
                    })

                elif msg.get("id") == TOOLS_CALL_ID:
                    answer = extract_answer_text(result)
                    elapsed = time.monotonic() - start
                    logger.info(f"Work IQ answered in {elapsed:.1f}s ({len(answer)} chars)")
                    logger.debug(f"Answer preview: {answer[:300]!r}")
                    return answer
        finally:
            if proc.poll() is None:
                proc.kill()
                proc.wait()


# Global client instance
_agent_client: Optional[WorkIQClient] = None


def get_agent_client() -> WorkIQClient:
    """Get the global Work IQ client instance."""
    global _agent_client
    if _agent_client is None:
        _agent_client = WorkIQClient()
    return _agent_client


def reset_agent_client():
    """Reset the global Work IQ client instance."""
    global _agent_client
    _agent_client = None


def ask(question: str, timeout: Optional[float] = None) -> str:
    return get_agent_client().ask(question, timeout)
