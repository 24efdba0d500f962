"""Root endpoint."""

from fastapi import APIRouter

from feedrank import __version__

from ..state import get_state

router = APIRouter()


@router.get("/")
def root():
    state = get_state()
    return {
        "name": "Feedrank API",
        "version": __version__,
        "status": "loaded" if state.is_loaded else "empty",
        "dataset": state.current_dataset.folder_name if state.current_dataset else None,
        "available": {
            "datasets": len(state.dataset_loader.list_datasets()),
        },
        "endpoints": {
            "feed": ["/api/feed"],
            "interactions": ["/api/interactions"],
            "algorithm": [
                "/api/algorithm/grade-transition",
                "/api/algorithm/drift-check",
                "/api/algorithm/maintenance/{job}",
                "/api/algorithm/stats",
                "/api/algorithm/health",
            ],
        },
    }
