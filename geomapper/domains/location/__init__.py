"""
Location domain for live GPS positioning on a rotated site map.

This domain handles:
- Reference point registration and GPS to map transformation
- Sample plausibility checks and exponential smoothing
- Update throttling and frame-aligned render dispatch
- Simulated walk test mode
"""
