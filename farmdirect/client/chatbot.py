"""Keyword-matching FAQ assistant."""
from typing import Dict, List, Tuple

from farmdirect.client.i18n import DEFAULT_LANGUAGE, translate

# Matched against every language's input
FAQ: List[Tuple[str, str]] = [
    (
        "market prices",
        "Current market prices are updated daily. Tomatoes: ₹45/kg, Potatoes: ₹25/kg, "
        "Onions: ₹30/kg, Carrots: ₹40/kg. Our direct farmer prices are 15-20% lower than market rates.",
    ),
    (
        "how to order",
        "Browse products, select quantities, and place orders directly through our platform. "
        "Delivery scheduling is available. Payment options: UPI, cards, net banking.",
    ),
    (
        "farmer registration",
        "Farmers can register on our platform to sell directly to buyers. Registration is free. "
        "You'll need to provide farm details and product information.",
    ),
    (
        "delivery",
        "We provide logistics support with scheduled deliveries to buyers. "
        "Delivery within 24 hours for local orders.",
    ),
]

FALLBACKS: Dict[str, str] = {
    "en": (
        "I can help you with market prices, how to place orders, farmer registration, "
        "or delivery information. Please ask a specific question."
    ),
    "hi": (
        "मैं आपकी बाजार मूल्य, आदेश कैसे दें, किसान पंजीकरण, या वितरण जानकारी के साथ मदद कर "
        "सकता हूं। कृपया एक विशिष्ट प्रश्न पूछें।"
    ),
    "te": (
        "నేను మార్కెట్ ధరలు, ఆర్డర్లు ఎలా ఇవ్వాలి, రైతు నమోదు లేదా డెలివరీ సమాచారంతో మీకు సహాయం "
        "చేయగలను. దయచేసి ఒక నిర్దిష్ట ప్రశ్న అడగండి."
    ),
    "kn": (
        "ನಾನು ನಿಮಗೆ ಮಾರುಕಟ್ಟೆ ಬೆಲೆಗಳು, ಆದೇಶಗಳನ್ನು ಹೇಗೆ ನೀಡಬೇಕು, ರೈತ ನೋಂದಣಿ, ಅಥವಾ ವಿತರಣಾ "
        "ಮಾಹಿತಿಯೊಂದಿಗೆ ಸಹಾಯ ಮಾಡಬಹುದು. ದಯವಿಟ್ಟು ಒಂದು ನಿರ್ದಿಷ್ಟ ಪ್ರಶ್ನೆಯನ್ನು ಕೇಳಿ."
    ),
}


def answer(message: str, language: str = DEFAULT_LANGUAGE) -> str:
    """
    Answer a chat message.

    The lower-cased, trimmed message is searched for each FAQ key in order;
    the first key found wins. Unmatched input gets the language's fallback.
    """
    text = (message or "").strip().lower()
    for question, reply in FAQ:
        if question in text:
            return reply
    return FALLBACKS.get(language, FALLBACKS[DEFAULT_LANGUAGE])


def greeting(language: str = DEFAULT_LANGUAGE) -> str:
    return translate("chatbotGreeting", language)


def quick_questions(language: str = DEFAULT_LANGUAGE) -> List[str]:
    return list(translate("quickQuestions", language))
