from typing import Dict, Mapping


def compute_delta(baseline: Mapping[str, str], target: Mapping[str, str]) -> Dict[str, str]:
    """Return the baseline entries whose key the target does not have yet."""
    return {key: value for key, value in baseline.items() if key not in target}
