"""
meterdata_pipeline.ingest — stages of the CSV upload pipeline.

  gatekeeper  — password verification and payload presence
  decoder     — optional gzip decompression
  artifacts   — temporary on-disk copy of the decoded payload
  reader      — delimiter splitting into ordered rows
  schemas     — versioned column order per entity kind
  mapper      — positional zip of rows onto schema fields
  pipeline    — orchestrator producing one PipelineOutcome per request
"""
