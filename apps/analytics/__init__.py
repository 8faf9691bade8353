"""
The 'analytics' app turns raw match history into player-facing statistics:
hero comfort, role distribution, streaks and trends, and rule-based insights.
"""
