class Config:
    """Configuration settings for the fraud monitoring service"""
    
    # API Settings
    API_TITLE = "Fraud Monitor API"
    API_DESCRIPTION = "Real-time transaction risk scoring with switchable model versions"
    API_VERSION = "1.0.0"
    API_HOST = "0.0.0.0"
    API_PORT = 8001
    
    # Model Registry
    DEFAULT_MODEL_ID = "model_v2"
    
    # Recommendation band around the active model threshold
    REVIEW_MARGIN = 10
    
    # Data Generation
    FRAUD_PROBABILITY = 0.15
    N_USERS = 1000
    MIN_USER_AGE = 18
    MAX_USER_AGE = 77
    BATCH_SIZE = 50
    
    # Risk Signals
    VELOCITY_WINDOW_MINUTES = 60
    UNKNOWN_MERCHANT = "Unknown Merchant"
    HIGH_RISK_COUNTRIES = ["Nigeria", "Ukraine", "India"]
    SUSPICIOUS_MERCHANTS = ["Cash Advance", "Western Union", "MoneyGram"]
    
    # Monitoring
    DISPLAY_WINDOW = 100
    FLAGGED_RISK_SCORE = 60
    
    # Evaluation
    EVALUATION_SAMPLES = 500
    MAX_EVALUATION_SAMPLES = 5000
    
    # Logging
    LOG_LEVEL = "INFO"
