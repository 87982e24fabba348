"""
Campaign Service

Brand campaign marketplace microservice providing:
- View estimation and view targets from budget and payout rates
- The multi-step campaign creation wizard
- Campaign lifecycle with admin approval and rejection feedback
- Creator joins and content submissions with moderation

Port: 8251
"""

__version__ = "1.0.0"
__service__ = "campaign_service"
