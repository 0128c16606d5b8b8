"""Translation tables for English, Hindi, Telugu and Kannada."""
from typing import Any, Dict

DEFAULT_LANGUAGE = "en"

TRANSLATIONS: Dict[str, Dict[str, Any]] = {
    "en": {
        "authTitle": "AgriTech Direct",
        "login": "Login",
        "register": "Register",
        "logout": "Logout",
        "orders": "Orders",
        "priceTitle": "Price Comparison: Farmer vs Market",
        "productsTitle": "Fresh From Our Farms",
        "savingsHeader": "You Save",
        "inStock": "In Stock",
        "limitedStock": "Limited Stock",
        "outOfStock": "Out of Stock",
        "order": "Order",
        "save": "Save",
        "chatbotTitle": "AgriTech Assistant",
        "chatbotGreeting": (
            "Hello! I'm your AgriTech assistant. How can I help you today? You can ask me "
            "about market prices, product availability, or how to place orders."
        ),
        "quickQuestions": ["Market Prices", "How to Order", "Farmer Registration", "Delivery"],
    },
    "hi": {
        "authTitle": "अग्रीटेक डायरेक्ट",
        "login": "लॉगिन",
        "register": "रजिस्टर",
        "logout": "लॉगआउट",
        "orders": "आदेश",
        "priceTitle": "मूल्य तुलना: किसान बनाम बाजार",
        "productsTitle": "हमारे खेतों से ताजा",
        "savingsHeader": "आपकी बचत",
        "inStock": "स्टॉक में",
        "limitedStock": "सीमित स्टॉक",
        "order": "आदेश दें",
        "save": "बचाएं",
        "chatbotTitle": "अग्रीटेक असिस्टेंट",
        "chatbotGreeting": (
            "नमस्ते! मैं आपका अग्रीटेक असिस्टेंट हूं। आज मैं आपकी कैसे मदद कर सकता हूं? आप मुझसे "
            "बाजार मूल्य, उत्पाद उपलब्धता, या आदेश कैसे दें, इसके बारे में पूछ सकते हैं।"
        ),
        "quickQuestions": ["बाजार मूल्य", "आदेश कैसे दें", "किसान पंजीकरण", "वितरण"],
    },
    "te": {
        "authTitle": "అగ్రీటెక్ డైరెక్ట్",
        "login": "లాగిన్",
        "register": "నమోదు",
        "logout": "లాగ్అవుట్",
        "orders": "ఆర్డర్లు",
        "priceTitle": "ధర సరిపోలిక: రైతు Vs మార్కెట్",
        "productsTitle": "మా పొలాల నుండి తాజాగా",
        "savingsHeader": "మీరు ఆదా చేస్తారు",
        "inStock": "స్టాక్లో ఉంది",
        "limitedStock": "పరిమిత స్టాక్",
        "order": "ఆర్డర్ చేయండి",
        "save": "సేవ్",
        "chatbotTitle": "అగ్రీటెక్ అసిస్టెంట్",
        "chatbotGreeting": (
            "హలో! నేను మీ అగ్రీటెక్ అసిస్టెంట్. ఈరోజు నేను మీకు ఎలా సహాయం చేయగలను? మీరు నన్ను "
            "మార్కెట్ ధరలు, ఉత్పత్తి లభ్యత, లేదా ఆర్డర్లు ఎలా ఇవ్వాలో అడగవచ్చు."
        ),
        "quickQuestions": ["మార్కెట్ ధరలు", "ఆర్డర్ ఎలా ఇవ్వాలి", "రైతు నమోదు", "డెలివరీ"],
    },
    "kn": {
        "authTitle": "ಅಗ್ರಿಟೆಕ್ ಡೈರೆಕ್ಟ್",
        "login": "ಲಾಗಿನ್",
        "register": "ನೋಂದಾಯಿಸಿ",
        "logout": "ಲಾಗ್ಔಟ್",
        "orders": "ಆದೇಶಗಳು",
        "priceTitle": "ಬೆಲೆ ಹೋಲಿಕೆ: ರೈತ Vs ಮಾರುಕಟ್ಟೆ",
        "productsTitle": "ನಮ್ಮ ಕೃಷಿ ಭೂಮಿಯಿಂದ ತಾಜಾ",
        "savingsHeader": "ನೀವು ಉಳಿಸುತ್ತೀರಿ",
        "inStock": "ಸ್ಟಾಕ್ನಲ್ಲಿ ಲಭ್ಯವಿದೆ",
        "limitedStock": "ಸೀಮಿತ ಸ್ಟಾಕ್",
        "order": "ಆದೇಶಿಸಿ",
        "save": "ಉಳಿಸಿ",
        "chatbotTitle": "ಅಗ್ರಿಟೆಕ್ ಸಹಾಯಕ",
        "chatbotGreeting": (
            "ನಮಸ್ಕಾರ! ನಾನು ನಿಮ್ಮ ಅಗ್ರಿಟೆಕ್ ಸಹಾಯಕ. ಇಂದು ನಾನು ನಿಮಗೆ ಹೇಗೆ ಸಹಾಯ ಮಾಡಬಹುದು? ನೀವು "
            "ನನ್ನನ್ನು ಮಾರುಕಟ್ಟೆ ಬೆಲೆಗಳು, ಉತ್ಪನ್ನ ಲಭ್ಯತೆ, ಅಥವಾ ಆದೇಶಗಳನ್ನು ಹೇಗೆ ನೀಡಬೇಕು ಎಂಬುದರ "
            "ಕುರಿತು ಕೇಳಬಹುದು."
        ),
        "quickQuestions": ["ಮಾರುಕಟ್ಟೆ ಬೆಲೆಗಳು", "ಆದೇಶ ಹೇಗೆ ನೀಡಬೇಕು", "ರೈತ ನೋಂದಣಿ", "ವಿತರಣೆ"],
    },
}

SUPPORTED_LANGUAGES = tuple(TRANSLATIONS)


def translate(key: str, language: str = DEFAULT_LANGUAGE) -> Any:
    """Look a key up, falling back to English, then to the key itself."""
    table = TRANSLATIONS.get(language, TRANSLATIONS[DEFAULT_LANGUAGE])
    if key in table:
        return table[key]
    return TRANSLATIONS[DEFAULT_LANGUAGE].get(key, key)


def availability_label(availability: str, language: str = DEFAULT_LANGUAGE) -> str:
    if availability == "available":
        return translate("inStock", language)
    if availability == "limited":
        return translate("limitedStock", language)
    return translate("outOfStock", language)
