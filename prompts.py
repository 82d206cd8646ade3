OUTPUT_FORMAT = """
            Respond ONLY with valid JSON in this exact format (no markdown, no extra text):
            {
                "verdict": "AI Generated" or "Human Generated",
                "confidence": (number between 0 and 100, the likelihood that the content is AI generated),
                "summary": "Brief explanation of your analysis",
                "indicators": [
                    {
                        "label": "Specific indicator name",
                        "detail": "Explanation of what you observed",
                        "signal": "ai" or "human" or "neutral"
                    }
                ]
            }
            """

TEXT_PROMPT = """
            You are an expert in detecting AI-generated text (large language models, paraphrasing tools, AI writing assistants). Analyze the following text carefully and determine if it was written by AI or by a human.

            Analyze for:
            - AI patterns: overly formal or uniform register, repetitive sentence structures, generic phrasing
            - Lack of personal voice, hedging filler and balanced "on the other hand" framing
            - Human patterns: varied sentence length and structure, personal touches, natural flow
            - Specific details and authentic experiences versus vague generalities
            - Typos, slang, idiosyncratic punctuation and other natural imperfections
            - Consistency and coherence across paragraphs

            Text to analyze:
            \"\"\"
            {text}
            \"\"\"
            {output_format}"""

IMAGE_PROMPT = """
            You are an expert in detecting AI-generated images. Analyze this image carefully and determine if it was created by AI (including GANs, diffusion models, etc.) or is a genuine human-created photograph.

            Analyze for:
            - Artifact patterns (blurring, distortion, unusual textures)
            - Lighting and shadow consistency
            - Object boundaries and edges
            - Anatomical correctness (if applicable)
            - Pixel patterns and compression anomalies
            - Background-foreground coherence
            - Text rendering (if present)
            - Color gradients and transitions
            {output_format}"""

AUDIO_PROMPT = """
            You are an expert in detecting AI-generated audio (text-to-speech, voice cloning, deepfake audio). Analyze this audio file carefully and determine if it was created by AI or is a genuine human recording.

            The file name is: {file_name}

            Analyze for:
            - Unnatural prosody or rhythm patterns
            - Consistent pitch without micro-variations
            - Breathing patterns (natural vs absent/artificial)
            - Background noise characteristics
            - Spectral artifacts from synthesis
            - Emotional inflection naturalness
            - Mouth sounds and lip smacking (natural speech markers)
            - Audio compression artifacts vs synthesis artifacts
            {output_format}"""


def build_text_prompt(text: str) -> str:
    return TEXT_PROMPT.format(text=text, output_format=OUTPUT_FORMAT)


def build_image_prompt() -> str:
    return IMAGE_PROMPT.format(output_format=OUTPUT_FORMAT)


def build_audio_prompt(file_name: str = None) -> str:
    return AUDIO_PROMPT.format(file_name=file_name or "unknown", output_format=OUTPUT_FORMAT)
