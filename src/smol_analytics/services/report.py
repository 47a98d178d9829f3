"""Bar-chart text reports for ranked visit lists.

Example (hourly, two routes):

    **hourly visits**
    ```
    blog/post-1 ████████████████████████████████████████ 120
    about       ████████████████████ 60

    each █ is 3 visits
    ```
"""

from collections.abc import Sequence

from smol_analytics.services.aggregator import VisitCount

TOP_N = 20
BAR_WIDTH = 40
BLOCK = "█"

NO_VISITS_MESSAGE = "no visits recorded"


def render_chart(visits: Sequence[VisitCount]) -> str:
    """Render the top routes as bars scaled against the busiest route."""
    top = list(visits[:TOP_N])
    if not top:
        raise ValueError("Cannot render a chart without visits")

    _, max_count = top[0]
    if max_count <= 0:
        raise ValueError("Top route must have a positive visit count")

    width = max(len(route) for route, _ in top)
    lines = []
    for route, count in top:
        blocks = count * BAR_WIDTH // max_count
        lines.append(f"{route.ljust(width)} {BLOCK * blocks} {count}")

    unit = f"each {BLOCK} is {max_count // BAR_WIDTH} visits"
    return "\n".join(lines) + "\n\n" + unit


def render_report(mode: str, visits: Sequence[VisitCount]) -> str:
    """Full report text: bold title plus the chart in a code block."""
    title = f"**{mode} visits**"
    if not visits:
        return f"{title}\n{NO_VISITS_MESSAGE}"
    return f"{title}\n```\n{render_chart(visits)}\n```"


def build_payload(content: str) -> dict[str, str]:
    """Webhook JSON body."""
    return {"content": content}
