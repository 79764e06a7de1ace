from app.schemas.alert import (
    InventoryItem,
    BranchInventoryItem,
    Alert,
    AlertCounts,
    AlertSummary,
    AlertEvaluationRequest,
    DigestRequest,
    AlertMessageResponse,
)
