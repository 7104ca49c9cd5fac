"""In-memory HTTP transport for tests."""

import re
from typing import Callable, Dict, List, Optional, Tuple, Union

from ..api.executor import HttpResponse, HttpTransport

RequestPredicate = Callable[[str], bool]


def check_request(method: str, path: str, host: str) -> RequestPredicate:
    """Predicate matching ``"METHOD URL"`` strings.

    Args:
        method: HTTP method
        path: Regular expression for the URL part following the host
        host: Scheme and host, e.g. ``https://gerrit.example.com``

    Returns:
        Predicate over request strings
    """
    pattern = re.compile(f'{re.escape(method)} {re.escape(host)}{path}', re.DOTALL)
    return lambda request: pattern.search(request) is not None


class MockTransport(HttpTransport):
    """Answers requests from an ordered list of canned responses.

    The first predicate matching ``"METHOD URL"`` wins. Unmatched requests get
    a 404 whose body names the request, which is what makes tests fail with a
    readable message when a request was not expected.
    """

    def __init__(self):
        self.responses: List[Tuple[RequestPredicate, HttpResponse]] = []
        self.requests: List[str] = []
        self.bodies: List[Optional[bytes]] = []
        self.headers: List[Dict[str, str]] = []

    def mock_response(
        self,
        predicate: RequestPredicate,
        content: Union[str, bytes],
        status_code: int = 200,
    ) -> None:
        """Register a canned response."""
        if isinstance(content, str):
            content = content.encode('utf-8')
        self.responses.append(
            (predicate, HttpResponse(status_code=status_code, content=content))
        )

    def send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[bytes] = None,
    ) -> HttpResponse:
        request = f'{method} {url}'
        self.requests.append(request)
        self.bodies.append(body)
        self.headers.append(dict(headers))

        for predicate, response in self.responses:
            if predicate(request):
                return response
        return HttpResponse(
            status_code=404, content=f'REQUEST: {request}'.encode('utf-8')
        )
