"""
trend-insight core package.

Modules
───────
models       — Pydantic models (ResearchRequest, TrendReport, SourceRef) and the report JSON schema
errors       — exception taxonomy (InvalidRequestError, UpstreamError, ReportParseError)
period       — period selector → display label + directive note
directives   — system/user directive composition for every phase
extractor    — provider response → text (tagged union of response shapes)
providers    — PhaseConfig and the Anthropic Messages API adapter
repair       — strict report parsing and the Empty Result fallback
finalizer    — id / generated_at / title guarantees
orchestrator — SEARCH → FORMAT → REPAIR state machine
"""
