"""Localized user-facing texts."""

from __future__ import annotations

DEFAULT_LANGUAGE = "en"
SUPPORTED_LANGUAGES = ("en", "zh")
LANGUAGE_NAMES = {"en": "English", "zh": "中文"}

_EN = {
    "start": (
        "Welcome to the Pollinations.AI Telegram Bot, {name}! 🌸\n\n"
        "I can help you generate images, audio, and chat with AI models. "
        "Use /help to see available commands."
    ),
    "help": (
        "Pollinations.AI Telegram Bot\n\n"
        "This bot uses the Pollinations.AI API to provide AI-powered features.\n\n"
        "Commands:\n"
        "• /start - Start the bot\n"
        "• /help - Show this help message\n"
        "• /image <prompt> - Generate an image\n"
        "• /tts <text> - Convert text to speech\n"
        "• /stt - Reply to a voice message to transcribe it\n"
        "• /chat <message> - Chat with AI models\n"
        "• /clearchat - Clear conversation history\n"
        "• /models - List available models\n"
        "• /imagemodels, /textmodels, /voices - List one catalog\n"
        "• /settings - Change bot settings\n"
        "• /language - Change language\n\n"
        "Examples:\n"
        "/image A beautiful sunset over the ocean\n"
        "/tts Hello, how are you today?\n"
        "/chat Tell me about artificial intelligence\n\n"
        "More information: https://pollinations.ai/"
    ),
    "usage_image": (
        "Please provide a prompt for the image.\n\n"
        "Example: /image A cute cat in the sunshine"
    ),
    "usage_tts": "Please provide text to convert to speech.\n\nExample: /tts Hello, world!",
    "usage_chat": (
        "Please provide a message for the AI.\n\n"
        "Example: /chat Tell me about artificial intelligence"
    ),
    "usage_stt": (
        "Reply to a voice message with /stt to transcribe it.\n\n"
        "1. Send or forward a voice message\n"
        "2. Reply to it with /stt"
    ),
    "status_image": (
        "⏳ Generating your image, please wait...\n\n"
        "High quality images can take 10-40 seconds."
    ),
    "status_image_alternative": "🎨 Generating your image...\n\nThe first model failed, trying another one.\n⏳ Please keep waiting...",
    "status_image_final": "🎨 Generating your image...\n\n⏳ Final attempt with a shortened prompt...",
    "status_tts": "🔊 Generating speech, please wait (10-20 seconds)...",
    "status_stt": "🎙️ Transcribing audio, please wait...",
    "status_chat": "🤔 Thinking...",
    "status_catalog": "Fetching available models...",
    "ack_processing": "⏳ Working on it...",
    "caption_title": "🖼️ Generated image",
    "caption_alternative_model": "⚠️ The requested model failed, an alternative model was used",
    "caption_shortened": "⚠️ A shortened prompt was used",
    "caption_prompt": "Prompt: {prompt}",
    "caption_shortened_prompt": "Shortened prompt: {prompt}",
    "caption_model": "Model: {model}",
    "caption_resolution": "Resolution: {width}x{height}",
    "full_prompt": "📝 Full prompt:\n\n{prompt}",
    "image_failed": "⚠️ Image generation failed.",
    "image_failed_timeout": (
        "Possible cause: the prompt is too long or the server timed out.\n\n"
        "Suggestions:\n"
        "- Shorten the prompt (300 characters or less)\n"
        "- Remove unnecessary details\n"
        "- Try again later, the server may be busy"
    ),
    "image_failed_not_found": (
        "Possible cause: the API endpoint is unavailable or has changed.\n\n"
        "Suggestions:\n"
        "- Use a shorter prompt\n"
        "- Try again later, the service may be under maintenance"
    ),
    "image_failed_other": "Please try a shorter prompt, or try again later.",
    "image_failed_footer": "You can also try https://pollinations.ai directly in your browser.",
    "tts_failed": "⚠️ Speech generation failed.",
    "tts_failed_too_small": "The generated audio was invalid.",
    "tts_failed_timeout": "The request timed out, please try again later.",
    "tts_failed_rejected": "The server rejected the request.",
    "tts_failed_footer": (
        "Please try:\n"
        "1. A shorter text\n"
        "2. A different voice\n"
        "3. /settings to change audio settings"
    ),
    "stt_failed": "⚠️ Audio transcription failed.",
    "stt_failed_too_small": "The audio file is too small or damaged.",
    "stt_failed_download": "Could not download the audio file, please try again.",
    "stt_failed_footer": (
        "Please try:\n"
        "1. A clearer voice message\n"
        "2. Making sure the message is not too short or quiet"
    ),
    "stt_result": "📝 Transcription:\n\n{text}",
    "chat_failed": "⚠️ Error generating response. Please try again later.",
    "chat_failed_timeout": "⚠️ The AI took too long to respond. Please try again later.",
    "chat_cleared": "🧹 Conversation history cleared.",
    "delivery_failed": "⚠️ The result was generated but could not be sent. Please try the command again.",
    "generic_error": "⚠️ Something went wrong. Please try again later.",
    "models_image": "🖼️ Image models:\n{items}",
    "models_text": "💬 Text models:\n{items}",
    "models_voices": "🔊 Voices:\n{items}",
    "models_hint": "Use /settings to choose a model.",
    "no_voices": "No voices are available right now. Please try again later.",
    "language_prompt": "Please select your language / 请选择您的语言:",
    "language_set": "✅ Language set to English",
    "back": "« Back",
    "enabled": "Enabled ✅",
    "disabled": "Disabled ❌",
    "on": "ON ✅",
    "off": "OFF ❌",
    "settings_main": (
        "Current settings\n\n"
        "Image generation:\n"
        "• Model: {image_model}\n"
        "• Size: {width}x{height}\n"
        "• Enhance prompts: {enhance}\n\n"
        "Text generation:\n"
        "• Model: {text_model}\n\n"
        "Audio generation:\n"
        "• Voice: {voice}\n\n"
        "Other:\n"
        "• Private mode: {private}\n"
        "• Language: {language}\n\n"
        "Select a category to change settings:"
    ),
    "settings_image": (
        "Image generation settings\n\n"
        "• Current model: {image_model}\n"
        "• Current size: {width}x{height}\n"
        "• Enhance prompts: {enhance}\n\n"
        "Select an option to change:"
    ),
    "settings_text": "Text generation settings\n\n• Current model: {text_model}\n\nSelect an option to change:",
    "settings_audio": "Audio generation settings\n\n• Current voice: {voice}\n\nSelect an option to change:",
    "settings_other": (
        "Other settings\n\n"
        "• Private mode: {private}\n"
        "  (When enabled, your generations won't appear in the public feed)\n\n"
        "Select an option to change:"
    ),
    "settings_language": "Language settings\n\nCurrent language: {language}\n\nSelect your preferred language:",
    "select_image_model": "Select image model\n\nCurrent model: {model}\n\nChoose a model for image generation:",
    "select_text_model": (
        "Select text model\n\n"
        "Current model: {model}\n\n"
        "• 👁️ supports image understanding\n"
        "• 🤔 supports advanced reasoning\n"
        "• 🔒 has content filtering\n\n"
        "Please select a model to use:"
    ),
    "select_voice": "Select voice\n\nCurrent voice: {voice}\n\nChoose a voice for audio generation:",
    "select_size": "Select image size\n\nCurrent size: {width}x{height}\n\nChoose a size for image generation:",
    "button_image": "🖼️ Image Settings",
    "button_text": "💬 Text Settings",
    "button_audio": "🔊 Audio Settings",
    "button_language": "🌐 Language Settings",
    "button_other": "⚙️ Other Settings",
    "button_change_model": "Change Model",
    "button_change_size": "Change Size",
    "button_change_voice": "Change Voice",
    "button_enhance": "Enhance Prompts: {state}",
    "button_private": "Private Mode: {state}",
    "loading_models": "Loading models...",
    "image_model_set": "Image model set to {model}",
    "image_size_set": "Image size set to {width}x{height}",
    "enhance_toggled": "Prompt enhancement {state}",
    "text_model_set": "Text model set to {model}",
    "voice_set": "Voice set to {voice}",
    "private_toggled": "Private mode {state}",
    "state_enabled": "enabled",
    "state_disabled": "disabled",
    "callback_error": "An error occurred",
    "command_start": "Start the bot",
    "command_help": "Show help",
    "command_image": "Generate an image",
    "command_tts": "Convert text to speech",
    "command_stt": "Transcribe a replied voice message",
    "command_chat": "Chat with AI models",
    "command_clearchat": "Clear conversation history",
    "command_models": "List available models",
    "command_settings": "Change bot settings",
    "command_language": "Change language",
}

_ZH = {
    "start": (
        "欢迎使用 Pollinations.AI Telegram 机器人，{name}！🌸\n\n"
        "我可以帮助您生成图像、音频，并与 AI 模型聊天。使用 /help 查看可用命令。"
    ),
    "help": (
        "Pollinations.AI Telegram 机器人\n\n"
        "此机器人利用 Pollinations.AI API 提供由 AI 驱动的功能。\n\n"
        "命令：\n"
        "• /start - 启动机器人\n"
        "• /help - 显示此帮助信息\n"
        "• /image <提示词> - 生成图像\n"
        "• /tts <文本> - 将文本转换为语音\n"
        "• /stt - 回复语音消息以将其转录\n"
        "• /chat <消息> - 与 AI 模型聊天\n"
        "• /clearchat - 清除对话历史\n"
        "• /models - 列出可用模型\n"
        "• /imagemodels, /textmodels, /voices - 列出单个目录\n"
        "• /settings - 更改机器人设置\n"
        "• /language - 更改语言\n\n"
        "示例：\n"
        "/image 美丽的海上日落\n"
        "/tts 你好，今天过得怎么样？\n"
        "/chat 告诉我关于人工智能的信息\n\n"
        "更多信息：https://pollinations.ai/"
    ),
    "usage_image": "请提供生成图像的提示词。\n\n例如：/image 一只可爱的猫咪在阳光下",
    "usage_tts": "请在命令后输入要转换为语音的文本。\n\n例如：/tts 你好，世界！",
    "usage_chat": "请输入要发送给 AI 的消息。\n\n例如：/chat 告诉我关于人工智能的信息",
    "usage_stt": (
        "请回复一条语音消息并使用 /stt 命令来转录它。\n\n"
        "1. 发送或转发一条语音消息\n"
        "2. 回复该语音消息并输入 /stt"
    ),
    "status_image": "⏳ 正在生成您的图像，请稍候...\n\n高质量图像生成可能需要10-40秒，请耐心等待。",
    "status_image_alternative": "🎨 正在生成您的图像...\n\n首选模型失败，正在尝试其他模型。\n⏳ 请继续等待...",
    "status_image_final": "🎨 正在生成您的图像...\n\n⏳ 最后尝试生成图像...",
    "status_tts": "🔊 正在生成语音，请稍候（可能需要10-20秒）...",
    "status_stt": "🎙️ 正在转录音频，请稍候...",
    "status_chat": "🤔 思考中...",
    "status_catalog": "正在获取可用模型列表...",
    "ack_processing": "⏳ 正在处理...",
    "caption_title": "🖼️ 生成的图像",
    "caption_alternative_model": "⚠️ 原始模型失败，使用了备选模型",
    "caption_shortened": "⚠️ 使用了简化的提示词",
    "caption_prompt": "提示词: {prompt}",
    "caption_shortened_prompt": "简化提示词: {prompt}",
    "caption_model": "模型: {model}",
    "caption_resolution": "分辨率: {width}x{height}",
    "full_prompt": "📝 完整提示词:\n\n{prompt}",
    "image_failed": "⚠️ 图像生成失败。",
    "image_failed_timeout": (
        "可能的原因：提示词过长或服务器响应超时。\n\n"
        "建议：\n"
        "- 减少提示词长度（建议不超过300字符）\n"
        "- 简化提示词内容，去掉不必要的细节描述\n"
        "- 稍后再试，服务器可能暂时负载过高"
    ),
    "image_failed_not_found": (
        "可能的原因：API端点不可用或已更改。\n\n"
        "建议：\n"
        "- 使用更简短的提示词\n"
        "- 稍后再试，服务可能正在维护"
    ),
    "image_failed_other": "请尝试使用更简短的提示词，或稍后再试。",
    "image_failed_footer": "您可以直接在浏览器中访问 https://pollinations.ai 尝试手动生成图像。",
    "tts_failed": "⚠️ 生成语音时出错。",
    "tts_failed_too_small": "生成的音频无效。",
    "tts_failed_timeout": "请求超时，请稍后再试。",
    "tts_failed_rejected": "服务器拒绝了请求。",
    "tts_failed_footer": (
        "请尝试以下操作：\n"
        "1. 输入较短的文本\n"
        "2. 尝试使用不同的声音\n"
        "3. 使用 /settings 命令更改语音设置"
    ),
    "stt_failed": "⚠️ 音频转录失败。",
    "stt_failed_too_small": "音频文件太小或损坏。",
    "stt_failed_download": "无法下载音频文件，请重试。",
    "stt_failed_footer": (
        "请尝试：\n"
        "1. 发送更清晰的语音消息\n"
        "2. 确保语音消息不是太短或太安静"
    ),
    "stt_result": "📝 转录结果:\n\n{text}",
    "chat_failed": "⚠️ 生成回复时出错，请稍后再试。",
    "chat_failed_timeout": "⚠️ AI 响应超时，请稍后再试。",
    "chat_cleared": "🧹 对话历史已清除。",
    "delivery_failed": "⚠️ 结果已生成，但发送过程中遇到错误。请重试该命令。",
    "generic_error": "⚠️ 出现错误，请稍后再试。",
    "models_image": "🖼️ 图像模型:\n{items}",
    "models_text": "💬 文本模型:\n{items}",
    "models_voices": "🔊 语音:\n{items}",
    "models_hint": "使用 /settings 选择模型。",
    "no_voices": "目前没有可用的语音。请稍后再试。",
    "language_prompt": "Please select your language / 请选择您的语言:",
    "language_set": "✅ 语言已设置为中文",
    "back": "« 返回",
    "enabled": "已启用 ✅",
    "disabled": "已禁用 ❌",
    "on": "开启 ✅",
    "off": "关闭 ❌",
    "settings_main": (
        "当前设置\n\n"
        "图像生成:\n"
        "• 模型: {image_model}\n"
        "• 尺寸: {width}x{height}\n"
        "• 增强提示词: {enhance}\n\n"
        "文本生成:\n"
        "• 模型: {text_model}\n\n"
        "音频生成:\n"
        "• 语音: {voice}\n\n"
        "其他:\n"
        "• 隐私模式: {private}\n"
        "• 语言: {language}\n\n"
        "请选择要修改的设置类别:"
    ),
    "settings_image": (
        "图像生成设置\n\n"
        "• 当前模型: {image_model}\n"
        "• 当前尺寸: {width}x{height}\n"
        "• 增强提示词: {enhance}\n\n"
        "请选择要更改的选项:"
    ),
    "settings_text": "文本生成设置\n\n• 当前模型: {text_model}\n\n请选择要更改的选项:",
    "settings_audio": "音频生成设置\n\n• 当前语音: {voice}\n\n请选择要更改的选项:",
    "settings_other": (
        "其他设置\n\n"
        "• 隐私模式: {private}\n"
        "  (启用后，您的生成内容不会出现在公共源中)\n\n"
        "请选择要更改的选项:"
    ),
    "settings_language": "语言设置\n\n当前语言: {language}\n\n请选择您偏好的语言:",
    "select_image_model": "选择图像模型\n\n当前模型: {model}\n\n请选择用于图像生成的模型:",
    "select_text_model": (
        "选择文本模型\n\n"
        "当前模型: {model}\n\n"
        "• 带有 👁️ 的模型支持图像理解\n"
        "• 带有 🤔 的模型支持高级推理\n"
        "• 带有 🔒 的模型有内容过滤\n\n"
        "请选择要使用的模型:"
    ),
    "select_voice": "选择语音\n\n当前语音: {voice}\n\n请选择要用于语音生成的声音:",
    "select_size": "选择图像尺寸\n\n当前尺寸: {width}x{height}\n\n请选择用于图像生成的尺寸:",
    "button_image": "🖼️ 图像设置",
    "button_text": "💬 文本设置",
    "button_audio": "🔊 音频设置",
    "button_language": "🌐 语言设置",
    "button_other": "⚙️ 其他设置",
    "button_change_model": "更改模型",
    "button_change_size": "更改尺寸",
    "button_change_voice": "更改语音",
    "button_enhance": "增强提示词: {state}",
    "button_private": "隐私模式: {state}",
    "loading_models": "正在加载模型列表...",
    "image_model_set": "图像模型已设置为 {model}",
    "image_size_set": "图像尺寸已设置为 {width}x{height}",
    "enhance_toggled": "提示词增强已{state}",
    "text_model_set": "文本模型已设置为 {model}",
    "voice_set": "语音已设置为 {voice}",
    "private_toggled": "隐私模式已{state}",
    "state_enabled": "启用",
    "state_disabled": "禁用",
    "callback_error": "发生错误",
    "command_start": "启动机器人",
    "command_help": "显示帮助",
    "command_image": "生成图像",
    "command_tts": "将文本转换为语音",
    "command_stt": "转录回复的语音消息",
    "command_chat": "与 AI 模型聊天",
    "command_clearchat": "清除对话历史",
    "command_models": "列出可用模型",
    "command_settings": "更改机器人设置",
    "command_language": "更改语言",
}

TEXTS: dict[str, dict[str, str]] = {"en": _EN, "zh": _ZH}


def normalize_language(language: str | None) -> str:
    if language in TEXTS:
        return language
    return DEFAULT_LANGUAGE


def t(language: str | None, key: str, /, **kwargs: object) -> str:
    """Look up a text for language, falling back to English."""
    table = TEXTS[normalize_language(language)]
    template = table.get(key) or _EN[key]
    return template.format(**kwargs) if kwargs else template
