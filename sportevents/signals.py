"""Application signals.

``dashboard_invalidated`` is the cache-invalidation hint sent after any
event mutation. Receivers get the stale path as the ``path`` keyword.
It is fire-and-forget: senders never look at receiver return values.
"""

from blinker import Namespace

_signals = Namespace()

dashboard_invalidated = _signals.signal('dashboard-invalidated')


def notify_dashboard_stale():
    """Tell receivers that the dashboard view no longer reflects the data."""
    from flask import current_app
    dashboard_invalidated.send(
        current_app._get_current_object(),
        path=current_app.config.get('DASHBOARD_PATH', '/dashboard'),
    )
