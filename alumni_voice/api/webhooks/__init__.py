from alumni_voice.api.webhooks import voice

__all__ = ["voice"]
