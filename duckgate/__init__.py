"""duckgate - DuckDuckGo search over MCP with human-solved CAPTCHAs."""

__version__ = "0.1.0"
