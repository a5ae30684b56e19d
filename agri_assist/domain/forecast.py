from __future__ import annotations

import re
from typing import NamedTuple, Sequence


SUGGESTION_KEYWORDS: Sequence[str] = ("suggestion:", "recommendation:", "advice:")
NO_SUGGESTION = "No specific suggestion provided."
NO_FORECAST = "No specific forecast provided."

_FORECAST_LABEL_RE = re.compile(r"^\s*forecast\s*:\s*", re.IGNORECASE)
_TRAILING_PUNCT = " \t\r\n.;,-"


class ForecastSplit(NamedTuple):
    forecast: str
    suggestion: str


def split_forecast_text(
    text: str, keywords: Sequence[str] = SUGGESTION_KEYWORDS
) -> ForecastSplit:
    """
    Split a free-text agent reply into forecast and suggestion halves.

    Keywords are tried in order and the first one present wins; matching is
    case-insensitive. Without any keyword the whole text is the forecast.
    """
    text = (text or "").strip()
    lowered = text.lower()
    for keyword in keywords:
        index = lowered.find(keyword.lower())
        if index == -1:
            continue
        forecast = _FORECAST_LABEL_RE.sub("", text[:index], count=1)
        forecast = forecast.rstrip(_TRAILING_PUNCT).strip()
        suggestion = text[index + len(keyword) :].strip()
        return ForecastSplit(
            forecast=forecast or NO_FORECAST,
            suggestion=suggestion or NO_SUGGESTION,
        )
    return ForecastSplit(forecast=text or NO_FORECAST, suggestion=NO_SUGGESTION)
