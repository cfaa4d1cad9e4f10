# Services package init
"""
ChatGate Backend — Services Layer
===================================

Service Inventory:
    - ProfileStore: all SQL against the profiles table
    - EntitlementPolicy (MeteredPolicy, PremiumPolicy): pure gating decisions
    - ChatService: debit → Gemini → restore-on-failure orchestration
    - WebhookReconciler: Ko-fi payment → profile upgrade
    - SupabaseIdentityService: signup, login, token verification, admin delete
    - AuthService: two-phase signup with identity rollback, login
    - LLMService (abstract) / GeminiService: inference gateway
"""
