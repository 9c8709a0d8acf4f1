from typing import Dict, Optional

from camptrainer.counter import Effect


class FeedbackComposer:
    """Turns detector prompts and counter effects into trainee-facing text.

    English is complete; other languages fall back to English for any
    message they do not translate.
    """

    fallback_language = 'en'

    def __init__(self, language: str = 'en'):
        self.language = language
        self.message_db: Dict[str, Dict[str, str]] = {
            'en': {
                'no_body': "Position yourself in camera view",
                'show_full_body': "Show your full body in camera",
                'squat_ready': "Squat down until your knees bend",
                'squat_down': "Good squat! Now stand up completely!",
                'squat_transition': "Keep going",
                'squat_rep': "Great squat!",
                'jack_ready': "Jump! Arms up and legs wide",
                'jack_extended': "Perfect position! Now jump back!",
                'jack_transition': "Get arms higher and legs wider apart!",
                'jack_rep': "Great jumping jack!",
                'pushup_ready': "Lower your chest until your elbows bend",
                'pushup_down': "Good! Now push up",
                'pushup_transition': "Keep going",
                'pushup_rep': "Perfect form!",
                'rep_counted': "{value}",
                'set_completed': "Set completed",
                'rest_started': "Take rest",
                'countdown_tick': "{value}",
                'rest_over': "Set {value} ready",
                'exercise_completed': "Exercise completed",
                'completion_due': "Exercise completed",
                'remaining': "{value} more to go!",
            },
            'mr': {
                'set_completed': "सेट पूर्ण झाला",
                'rest_started': "विश्रांती घ्या",
                'rest_over': "सेट {value} तयार",
                'exercise_completed': "व्यायाम पूर्ण!",
                'completion_due': "व्यायाम पूर्ण!",
            },
        }

    def message(self, key: str, value: Optional[int] = None) -> str:
        """Look up a message in the session language.

        Args:
            key: Message identifier
            value: Number substituted into the message, if it takes one

        Returns:
            Formatted message, or an empty string for unknown keys
        """
        catalog = self.message_db.get(self.language, {})
        template = catalog.get(key)
        if template is None:
            template = self.message_db[self.fallback_language].get(key, '')
        return template.format(value=value)

    def describe(self, effect: Effect) -> str:
        return self.message(effect.kind.value, effect.value)

    def speech_language(self) -> str:
        """BCP 47 tag for the client's speech synthesizer."""
        return 'hi-IN' if self.language == 'mr' else 'en-US'

    def remaining(self, reps_left: int) -> str:
        return self.message('remaining', reps_left)
