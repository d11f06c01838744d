"""
HTTP Agent Invoker - Runs agents served behind an HTTP gateway.

Each invocation is a POST to {base_url}/agents/{agent_id}/invoke with the
JSON body {"agentId": ..., "input": ...}. The JSON response body (or the
part selected by extract_path) is the step result.
"""

import logging
from typing import Any, Dict, Optional
from urllib.parse import quote, urljoin

import requests

from agent_workflow import config
from agent_workflow.engine.errors import InvocationError
from agent_workflow.engine.invoker import AgentInvoker
from agent_workflow.engine.references import PathResolver
from agent_workflow.utils import make_json_serializable, sanitize_error_message

logger = logging.getLogger(__name__)


class HttpAgentInvoker(AgentInvoker):
    """
    HTTP client for remote agents.

    Timeouts are enforced per call here, not by the engine.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        headers: Optional[Dict[str, str]] = None,
        extract_path: Optional[str] = None,
        session: Optional[requests.Session] = None
    ):
        """
        Args:
            base_url: Agent gateway URL (default AGENT_GATEWAY_URL)
            timeout: Per-request timeout in seconds (default AGENT_REQUEST_TIMEOUT)
            headers: Extra request headers (e.g. authorization)
            extract_path: Dot path selecting part of the response (e.g. "data.output")
            session: Optional requests session for connection reuse
        """
        self.base_url = base_url or config.AGENT_GATEWAY_URL
        self.timeout = timeout if timeout is not None else config.AGENT_REQUEST_TIMEOUT
        self.headers = dict(headers or {})
        self.extract_path = extract_path
        self.session = session or requests.Session()

    def build_url(self, agent_id: str) -> str:
        """Endpoint URL for an agent."""
        path = f"agents/{quote(agent_id, safe='')}/invoke"
        return urljoin(self.base_url.rstrip('/') + '/', path)

    def invoke(self, agent_id: str, input: Any) -> Any:
        url = self.build_url(agent_id)
        headers = {'Content-Type': 'application/json', **self.headers}
        body = {"agentId": agent_id, "input": make_json_serializable(input)}

        logger.info(f"[agent.http] POST {url}")

        try:
            response = self.session.post(url, json=body, headers=headers, timeout=self.timeout)
        except requests.Timeout as e:
            raise InvocationError(
                agent_id,
                f"Request timed out after {self.timeout}s: {url}",
                original_error=e
            )
        except requests.ConnectionError as e:
            raise InvocationError(
                agent_id,
                f"Connection failed: {url} - {sanitize_error_message(e)}",
                original_error=e
            )
        except requests.RequestException as e:
            raise InvocationError(
                agent_id,
                f"Request failed: {url} - {sanitize_error_message(e)}",
                original_error=e
            )

        status_code = response.status_code
        success = 200 <= status_code < 300

        try:
            response_data = response.json()
        except ValueError:
            # Non-JSON response
            response_data = {"text": response.text}

        logger.info(f"[agent.http] Response: status={status_code}, success={success}")

        if not success:
            error_msg = None
            if isinstance(response_data, dict):
                error_msg = response_data.get('error')
            raise InvocationError(
                agent_id,
                f"Agent request failed ({status_code}): {sanitize_error_message(error_msg or response.text[:200])}"
            )

        if self.extract_path:
            response_data = self._extract_path(agent_id, response_data, self.extract_path)

        return response_data

    def _extract_path(self, agent_id: str, data: Any, path: str) -> Any:
        """Select the dotted path (e.g. "data.items.0") out of the response"""
        found, value = PathResolver().lookup(path.split('.'), data)
        if not found:
            raise InvocationError(agent_id, f"Path '{path}' not found in response")
        return value
