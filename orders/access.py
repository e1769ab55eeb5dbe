"""
Shared-password gate for the PrintTrack pages.

This keeps casual visitors off the UI. It is not access control: there is
one password for everybody and no per-user identity.
"""

import logging
from urllib.parse import urlencode

from django.conf import settings
from django.http import HttpRequest, HttpResponseRedirect, JsonResponse
from django.middleware.csrf import CsrfViewMiddleware
from django.urls import reverse
from django.utils.crypto import constant_time_compare
from django.utils.http import url_has_allowed_host_and_scheme

logger = logging.getLogger(__name__)

SESSION_KEY = "printtrack_authenticated"
API_PREFIX = "/api/"


def gate_password() -> str:
    return getattr(settings, "PRINTTRACK_ACCESS_PASSWORD", "") or ""


def gate_enabled() -> bool:
    return bool(gate_password())


def api_gated() -> bool:
    return bool(getattr(settings, "PRINTTRACK_GATE_API", False))


def is_unlocked(request: HttpRequest) -> bool:
    if not gate_enabled():
        return True
    return bool(request.session.get(SESSION_KEY))


def unlock(request: HttpRequest, password: str) -> bool:
    """Check the password server-side and remember success in the session."""
    if not gate_enabled():
        return True
    if not constant_time_compare(password or "", gate_password()):
        logger.info("Rejected access attempt from %s", request.META.get("REMOTE_ADDR", "?"))
        return False
    request.session.cycle_key()
    request.session[SESSION_KEY] = True
    return True


def lock(request: HttpRequest) -> None:
    request.session.pop(SESSION_KEY, None)


def safe_next_url(request: HttpRequest, candidate: str | None) -> str:
    if candidate and url_has_allowed_host_and_scheme(
        candidate, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return candidate
    return reverse("dashboard")


class AccessGateMiddleware:
    """Redirect locked sessions to the access page; optionally 401 the API."""

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request: HttpRequest):
        if not is_unlocked(request) and not self._is_exempt(request):
            if request.path.startswith(API_PREFIX):
                return JsonResponse({"error": "Authentication required"}, status=401)
            query = urlencode({"next": request.get_full_path()})
            return HttpResponseRedirect(f"{reverse('access-gate')}?{query}")
        return self.get_response(request)

    @staticmethod
    def _is_exempt(request: HttpRequest) -> bool:
        path = request.path
        if path.startswith(API_PREFIX):
            return not api_gated()
        if settings.STATIC_URL and path.startswith("/" + settings.STATIC_URL.lstrip("/")):
            return True
        return path in {reverse("access-gate"), reverse("access-leave")}


class ApiCsrfViewMiddleware(CsrfViewMiddleware):
    """
    Django's CSRF check, skipped for the JSON API while it is open to
    non-browser clients. Once ``PRINTTRACK_GATE_API`` ties the API to the
    session cookie, API writes need the token like every form post.
    """

    def process_view(self, request, callback, callback_args, callback_kwargs):
        if request.path.startswith(API_PREFIX) and not api_gated():
            return None
        return super().process_view(request, callback, callback_args, callback_kwargs)
