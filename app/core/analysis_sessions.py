from __future__ import annotations

from collections import OrderedDict

from app.services.analysis_client import AnalysisClient, AnalysisSession

MAX_TRACKED_SESSIONS = 1000

_sessions: "OrderedDict[str, AnalysisSession]" = OrderedDict()


def get_analysis_session(session_id: str, client: AnalysisClient) -> AnalysisSession:
    session = _sessions.get(session_id)
    if session is not None:
        _sessions.move_to_end(session_id)
        return session

    session = AnalysisSession(client)
    _sessions[session_id] = session
    while len(_sessions) > MAX_TRACKED_SESSIONS:
        oldest_id = next(
            (key for key, value in _sessions.items() if key != session_id and not value.busy),
            None,
        )
        if oldest_id is None:
            break
        del _sessions[oldest_id]
    return session


def clear_analysis_sessions() -> None:
    for session in _sessions.values():
        session.cancel()
    _sessions.clear()
