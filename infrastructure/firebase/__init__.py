from infrastructure.firebase.realtime_store import FirebaseAnalysisHistory, FirebaseRealtimeStore

__all__ = ["FirebaseAnalysisHistory", "FirebaseRealtimeStore"]
