"""Static vocabulary and question templates for the offline quiz generator."""

from __future__ import annotations

from typing import Dict

# concept key -> (target-language word keys used as options, correct key first)
CONCEPTS: tuple[tuple[str, str, tuple[str, str, str, str]], ...] = (
    ("greeting", "greetings", ("hello", "goodbye", "thanks", "please")),
    ("thanks", "basic_phrases", ("thanks", "hello", "goodbye", "yes")),
    ("farewell", "greetings", ("goodbye", "hello", "please", "thanks")),
    ("please", "politeness", ("please", "thanks", "yes", "goodbye")),
    ("yes", "basic_responses", ("yes", "hello", "thanks", "goodbye")),
)

WORDS: Dict[str, Dict[str, str]] = {
    "Spanish": {"hello": "Hola", "goodbye": "Adiós", "thanks": "Gracias", "please": "Por favor", "yes": "Sí"},
    "French": {"hello": "Bonjour", "goodbye": "Au revoir", "thanks": "Merci", "please": "S'il vous plaît", "yes": "Oui"},
    "German": {"hello": "Hallo", "goodbye": "Auf Wiedersehen", "thanks": "Danke", "please": "Bitte", "yes": "Ja"},
    "Italian": {"hello": "Ciao", "goodbye": "Arrivederci", "thanks": "Grazie", "please": "Per favore", "yes": "Sì"},
    "Russian": {"hello": "Привет", "goodbye": "До свидания", "thanks": "Спасибо", "please": "Пожалуйста", "yes": "Да"},
    "Japanese": {"hello": "こんにちは", "goodbye": "さようなら", "thanks": "ありがとう", "please": "お願いします", "yes": "はい"},
    "Chinese": {"hello": "你好", "goodbye": "再见", "thanks": "谢谢", "please": "请", "yes": "是"},
    "Korean": {"hello": "안녕하세요", "goodbye": "안녕히 가세요", "thanks": "감사합니다", "please": "주세요", "yes": "네"},
    "Portuguese": {"hello": "Olá", "goodbye": "Adeus", "thanks": "Obrigado", "please": "Por favor", "yes": "Sim"},
    "Dutch": {"hello": "Hallo", "goodbye": "Tot ziens", "thanks": "Dank je", "please": "Alsjeblieft", "yes": "Ja"},
    "English": {"hello": "Hello", "goodbye": "Goodbye", "thanks": "Thank you", "please": "Please", "yes": "Yes"},
}

GENERIC_WORDS: Dict[str, str] = {
    "hello": "Hello in {language}",
    "goodbye": "Goodbye in {language}",
    "thanks": "Thank you in {language}",
    "please": "Please in {language}",
    "yes": "Yes in {language}",
}

QUESTION_TEMPLATES: Dict[str, Dict[str, str]] = {
    "English": {
        "greeting": "What do you say when you greet someone?",
        "farewell": "What do you say when saying goodbye?",
        "thanks": "How do you express gratitude or thanks?",
        "please": "What word do you use to make a polite request?",
        "yes": "What word means affirmative or agreement?",
    },
    "Spanish": {
        "greeting": "¿Qué dices cuando saludas a alguien?",
        "farewell": "¿Qué dices cuando te despides?",
        "thanks": "¿Cómo expresas gratitud o agradecimiento?",
        "please": "¿Qué palabra usas para hacer una petición educada?",
        "yes": "¿Qué palabra significa afirmativo o acuerdo?",
    },
    "French": {
        "greeting": "Que dis-tu quand tu salues quelqu'un ?",
        "farewell": "Que dis-tu quand tu dis au revoir ?",
        "thanks": "Comment exprimes-tu ta gratitude ou tes remerciements ?",
        "please": "Quel mot utilises-tu pour faire une demande polie ?",
        "yes": "Quel mot signifie affirmatif ou accord ?",
    },
    "German": {
        "greeting": "Was sagst du, wenn du jemanden begrüßt?",
        "farewell": "Was sagst du, wenn du dich verabschiedest?",
        "thanks": "Wie drückst du Dankbarkeit oder Dank aus?",
        "please": "Welches Wort verwendest du für eine höfliche Bitte?",
        "yes": "Welches Wort bedeutet Zustimmung oder Ja?",
    },
    "Italian": {
        "greeting": "Cosa dici quando saluti qualcuno?",
        "farewell": "Cosa dici quando dici addio?",
        "thanks": "Come esprimi gratitudine o ringraziamenti?",
        "please": "Quale parola usi per fare una richiesta gentile?",
        "yes": "Quale parola significa affermativo o accordo?",
    },
    "Russian": {
        "greeting": "Что ты говоришь, когда приветствуешь кого-то?",
        "farewell": "Что ты говоришь, когда прощаешься?",
        "thanks": "Как ты выражаешь благодарность?",
        "please": "Какое слово ты используешь для вежливой просьбы?",
        "yes": "Какое слово означает утверждение или согласие?",
    },
    "Japanese": {
        "greeting": "誰かに挨拶するとき、何と言いますか？",
        "farewell": "さよならを言うとき、何と言いますか？",
        "thanks": "感謝の気持ちを表すとき、何と言いますか？",
        "please": "丁寧にお願いするとき、何という言葉を使いますか？",
        "yes": "肯定的な答えや同意を示す言葉は何ですか？",
    },
    "Chinese": {
        "greeting": "当你问候别人时，你说什么？",
        "farewell": "当你说再见时，你说什么？",
        "thanks": "你如何表达感谢？",
        "please": "你用什么词来进行礼貌的请求？",
        "yes": "什么词表示肯定或同意？",
    },
    "Korean": {
        "greeting": "누군가에게 인사할 때 뭐라고 말하나요?",
        "farewell": "작별을 고할 때 뭐라고 말하나요?",
        "thanks": "감사를 표현할 때 무엇이라고 말하나요?",
        "please": "정중하게 요청할 때 어떤 단어를 사용하나요?",
        "yes": "긍정적인 답변이나 동의를 나타내는 단어는 무엇인가요?",
    },
    "Portuguese": {
        "greeting": "O que você diz quando cumprimenta alguém?",
        "farewell": "O que você diz quando se despede?",
        "thanks": "Como você expressa gratidão ou agradecimento?",
        "please": "Qual palavra você usa para fazer um pedido educado?",
        "yes": "Qual palavra significa afirmativo ou concordância?",
    },
    "Dutch": {
        "greeting": "Wat zeg je als je iemand begroet?",
        "farewell": "Wat zeg je als je afscheid neemt?",
        "thanks": "Hoe druk je dankbaarheid of dank uit?",
        "please": "Welk woord gebruik je voor een beleefd verzoek?",
        "yes": "Welk woord betekent bevestigend of akkoord?",
    },
    "Hindi": {
        "greeting": "जब आप किसी का अभिवादन करते हैं तो क्या कहते हैं?",
        "farewell": "जब आप विदाई कहते हैं तो क्या कहते हैं?",
        "thanks": "आप धन्यवाद या आभार कैसे व्यक्त करते हैं?",
        "please": "विनम्र अनुरोध करने के लिए आप कौन सा शब्द इस्तेमाल करते हैं?",
        "yes": "कौन सा शब्द सहमति या हाँ को दर्शाता है?",
    },
    "Arabic": {
        "greeting": "ماذا تقول عندما تحيي شخصًا؟",
        "farewell": "ماذا تقول عندما تودع شخصًا؟",
        "thanks": "كيف تعبر عن الامتنان أو الشكر؟",
        "please": "ما الكلمة التي تستخدمها لتقديم طلب مهذب؟",
        "yes": "ما الكلمة التي تعني إيجابي أو موافقة؟",
    },
    "Turkish": {
        "greeting": "Birini selamladığınızda ne söylersiniz?",
        "farewell": "Veda ederken ne söylersiniz?",
        "thanks": "Minnetini veya teşekkürünü nasıl ifade edersiniz?",
        "please": "Kibar bir rica için hangi kelimeyi kullanırsınız?",
        "yes": "Olumlu veya uyum ifade eden kelime hangisidir?",
    },
    "Polish": {
        "greeting": "Co mówisz, kiedy kogoś witasz?",
        "farewell": "Co mówisz, kiedy się żegnasz?",
        "thanks": "Jak wyrażasz wdzięczność lub podziękowania?",
        "please": "Jakiego słowa używasz do uprzejmej prośby?",
        "yes": "Jakie słowo oznacza potwierdzenie lub zgodę?",
    },
    "Swedish": {
        "greeting": "Vad säger du när du hälsar på någon?",
        "farewell": "Vad säger du när du tar farväl?",
        "thanks": "Hur uttrycker du tacksamhet eller tack?",
        "please": "Vilket ord använder du för en artig begäran?",
        "yes": "Vilket ord betyder jakande eller överenskommelse?",
    },
    "Greek": {
        "greeting": "Τι λες όταν χαιρετάς κάποιον;",
        "farewell": "Τι λες όταν αποχαιρετάς;",
        "thanks": "Πώς εκφράζεις ευγνωμοσύνη ή ευχαριστίες;",
        "please": "Ποια λέξη χρησιμοποιείς για μια ευγενική παράκληση;",
        "yes": "Ποια λέξη σημαίνει καταφατικό ή συμφωνία;",
    },
    "Vietnamese": {
        "greeting": "Bạn nói gì khi chào hỏi ai đó?",
        "farewell": "Bạn nói gì khi chào tạm biệt?",
        "thanks": "Bạn biểu hiện lòng biết ơn như thế nào?",
        "please": "Bạn dùng từ gì để nhờ vả một cách lịch sự?",
        "yes": "Từ nào có nghĩa là khẳng định hoặc đồng ý?",
    },
    "Thai": {
        "greeting": "คุณพูดอะไรเมื่อทักทายใครสักคน?",
        "farewell": "คุณพูดอะไรเมื่อกล่าวลา?",
        "thanks": "คุณแสดงความขอบคุณหรือขอบใจอย่างไร?",
        "please": "คุณใช้คำอะไรเพื่อขอร้องอย่างสุภาพ?",
        "yes": "คำใดมีความหมายว่ายืนยันหรือเห็นด้วย?",
    },
    "Bengali": {
        "greeting": "আপনি কাউকে অভিবাদন জানাতে কী বলেন?",
        "farewell": "আপনি বিদায় জানাতে কী বলেন?",
        "thanks": "আপনি কীভাবে কৃতজ্ঞতা বা ধন্যবাদ প্রকাশ করেন?",
        "please": "ভদ্র অনুরোধের জন্য আপনি কোন শব্দ ব্যবহার করেন?",
        "yes": "কোন শব্দ সম্মতি বা হ্যাঁ বোঝায়?",
    },
    "Tamil": {
        "greeting": "யாரையாவது வாழ்த்தும்போது என்ன சொல்வீர்கள்?",
        "farewell": "விடைபெறும்போது என்ன சொல்வீர்கள்?",
        "thanks": "நன்றியை எவ்வாறு வெளிப்படுத்துவீர்கள்?",
        "please": "கண்ணியமான கோரிக்கைக்கு எந்த வார்த்தையைப் பயன்படுத்துவீர்கள்?",
        "yes": "உறுதிப்படுத்தல் அல்லது ஒப்புதலைக் குறிக்கும் வார்த்தை எது?",
    },
}


def _lookup(table: Dict[str, Dict[str, str]], language: str | None) -> Dict[str, str] | None:
    key = (language or "").strip().lower()
    return next((value for name, value in table.items() if name.lower() == key), None)


def words_for(language: str | None) -> Dict[str, str]:
    words = _lookup(WORDS, language)
    if words is not None:
        return words
    label = (language or "").strip() or "the target language"
    return {key: template.format(language=label) for key, template in GENERIC_WORDS.items()}


def templates_for(language: str | None) -> Dict[str, str]:
    return _lookup(QUESTION_TEMPLATES, language) or QUESTION_TEMPLATES["English"]
