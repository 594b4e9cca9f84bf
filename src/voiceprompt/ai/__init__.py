"""Model-facing layers of the router: transport, prompts, routing, and tools."""
