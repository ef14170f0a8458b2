# src/quadrant_tasks/llm/offline.py

from __future__ import annotations


class OfflineReportClient:
    """
    Offline deterministic report client used for demos when no API key is configured.

    It never calls the network; the "report" just states how many tasks the prompt listed.
    """

    async def generate(self, api_key: str, model: str, prompt: str) -> str:
        n_tasks = sum(1 for line in (prompt or "").splitlines() if line.startswith("- Task:"))
        return (
            "Offline demo mode: no report API is configured.\n"
            "Set QTASKS_OPENAI_API_KEY to enable real reports.\n\n"
            f"The prompt listed {n_tasks} task(s)."
        )
