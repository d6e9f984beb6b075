"""Local-first image resolution with pull as the fallback."""

from __future__ import annotations

from typing import Any, Callable, NamedTuple

from layerscan.core.reference import normalize_reference, parse_image_name
from layerscan.engine.base import EngineError, EngineNotFoundError, EngineUnavailableError
from layerscan.engine.gateway import RequestGateway
from layerscan.models.common import ResultStatus
from layerscan.models.scan import ResolveResult, ResolveState, ResolveTransition
from layerscan.utils.errors import ImageNotFoundError
from layerscan.utils.logging import get_logger

logger = get_logger(__name__)

TERMINAL_STATES = frozenset({ResolveState.FOUND, ResolveState.FAILED})


class _Step(NamedTuple):
    next_state: ResolveState
    reason: str
    data: Any = None
    error: EngineError | None = None


class ImageResolver:
    """Makes sure an image is present in the engine and returns its inspect data.

    The engine indexes images by repository, but a freshly pulled image is
    sometimes only addressable by the exact reference that was pulled. The
    lookup order is therefore:

    1. ``InspectRepo``: inspect by repository name
    2. ``Pull``: pull the full reference (tag defaults to ``latest``)
    3. ``ReinspectRepo``: inspect by repository name again
    4. ``ReinspectFull``: inspect by the full reference

    The pull answer itself is not checked; only the follow-up inspects
    decide whether the image is there. Nothing is pulled when the first
    inspect succeeds.

    Example:
        resolver = ImageResolver(RequestGateway(EngineConnection()))
        result = resolver.resolve("debian:bookworm")
        if result.success:
            print(result.inspect_data["Id"])
    """

    def __init__(self, gateway: RequestGateway) -> None:
        self._gateway = gateway

    @property
    def gateway(self) -> RequestGateway:
        return self._gateway

    def resolve(self, full_name: str) -> ResolveResult:
        """Run the resolution protocol for a reference. Never raises engine errors."""
        identifier = parse_image_name(full_name)
        pull_reference = normalize_reference(full_name)

        steps: dict[ResolveState, Callable[[], _Step]] = {
            ResolveState.INSPECT_REPO: lambda: self._inspect(identifier.repo, ResolveState.PULL),
            ResolveState.PULL: lambda: self._pull(pull_reference),
            ResolveState.REINSPECT_REPO: lambda: self._inspect(
                identifier.repo, ResolveState.REINSPECT_FULL
            ),
            ResolveState.REINSPECT_FULL: lambda: self._inspect(pull_reference, ResolveState.FAILED),
        }

        state = ResolveState.INSPECT_REPO
        transitions: list[ResolveTransition] = []
        errors: list[EngineError] = []
        inspect_data = None

        while state not in TERMINAL_STATES:
            step = steps[state]()
            transitions.append(ResolveTransition(source=state, target=step.next_state, reason=step.reason))
            logger.debug("%s -> %s: %s", state.value, step.next_state.value, step.reason)
            if step.error is not None:
                errors.append(step.error)
            if step.next_state == ResolveState.FOUND:
                inspect_data = step.data
            state = step.next_state

        if state == ResolveState.FOUND:
            status = ResultStatus.FOUND
        elif all(isinstance(e, EngineNotFoundError) for e in errors):
            status = ResultStatus.NOT_FOUND
        else:
            status = ResultStatus.ERROR

        details = [e.to_error_detail() for e in errors]
        if status == ResultStatus.NOT_FOUND:
            details.append(ImageNotFoundError(full_name).to_error_detail())
        if state == ResolveState.FAILED:
            logger.error("Unable to pull the image %s", identifier.repo or full_name)

        return ResolveResult(
            reference=full_name,
            pull_reference=pull_reference,
            identifier=identifier,
            state=state,
            status=status,
            inspect_data=inspect_data,
            transitions=transitions,
            errors=details,
        )

    def get_image(self, full_name: str) -> dict[str, Any] | None:
        """Inspect data for an image, pulling it if needed, or None on failure."""
        result = self.resolve(full_name)
        return result.inspect_data if result.success else None

    def remove_image(self, full_name: str, force: bool = False) -> str | None:
        """Remove an image from the engine.

        Returns:
            The engine's answer, or None without a connection

        Raises:
            EngineNotFoundError: If the engine does not know the image
            EngineRequestError: For other failures, e.g. an image in use
        """
        force_flag = "true" if force else "false"
        answer = self._gateway.request(f"images/{full_name}?force={force_flag}", "DELETE")
        logger.debug("Remove %s: %s", full_name, answer)
        return answer

    def _inspect(self, reference: str, on_miss: ResolveState) -> _Step:
        try:
            data = self._gateway.request(f"images/{reference}/json")
        except EngineError as e:
            return _Step(on_miss, f"inspect of {reference} failed: {e.message}", error=e)

        if data is None:
            return self._unavailable()

        logger.debug("Inspect data for %s: %s", reference, data)
        return _Step(ResolveState.FOUND, f"inspect of {reference} succeeded", data=data)

    def _pull(self, reference: str) -> _Step:
        logger.info("Trying to pull the image %s from registry. This might take a while ...", reference)
        try:
            answer = self._gateway.request(f"images/create?fromImage={reference}", "POST")
        except EngineError as e:
            return _Step(
                ResolveState.REINSPECT_REPO,
                f"pull of {reference} failed ({e.message}), checking the engine anyway",
                error=e,
            )

        if answer is None:
            return self._unavailable()

        logger.debug("Pull answer for %s: %s", reference, answer)
        return _Step(ResolveState.REINSPECT_REPO, f"pull of {reference} requested")

    def _unavailable(self) -> _Step:
        error = EngineUnavailableError(self._gateway.connection.options.base_url)
        return _Step(ResolveState.FAILED, "engine connection unavailable", error=error)
