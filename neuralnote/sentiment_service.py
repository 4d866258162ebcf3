from vaderSentiment.vaderSentiment import SentimentIntensityAnalyzer

analyzer = SentimentIntensityAnalyzer()


def mood_score(text):
    """VADER compound polarity in [-1, 1]; stored alongside the entry."""
    if not text:
        return 0.0
    return analyzer.polarity_scores(text)["compound"]
