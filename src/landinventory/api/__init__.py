"""
FastAPI REST API for the Land Inventory Engine

Provides REST endpoints for:
- Blocks and plots of a land property
- Plot status and booking updates with status history
- Layout configurations (save, apply, duplicate)
- Land statistics and health checks
"""
