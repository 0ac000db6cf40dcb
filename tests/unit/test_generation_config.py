from gemini_gateway.converters import transform_config


def test_known_fields_are_renamed_and_unknown_dropped():
    assert transform_config(
        {"temperature": 0.7, "max_tokens": 100, "logit_bias": {"1": 2}, "user": "u"}
    ) == {"temperature": 0.7, "maxOutputTokens": 100}


def test_full_field_map():
    request = {
        "frequency_penalty": 0.1,
        "max_tokens": 10,
        "n": 2,
        "presence_penalty": 0.2,
        "seed": 42,
        "stop": ["END"],
        "temperature": 0.5,
        "top_k": 40,
        "top_p": 0.9,
    }

    assert transform_config(request) == {
        "frequencyPenalty": 0.1,
        "maxOutputTokens": 10,
        "candidateCount": 2,
        "presencePenalty": 0.2,
        "seed": 42,
        "stopSequences": ["END"],
        "temperature": 0.5,
        "topK": 40,
        "topP": 0.9,
    }


def test_single_stop_string_becomes_list():
    assert transform_config({"stop": "END"}) == {"stopSequences": ["END"]}


def test_json_object_response_format_sets_mime_type():
    result = transform_config({"response_format": {"type": "json_object"}})
    assert result == {"responseMimeType": "application/json"}


def test_other_response_formats_are_ignored():
    assert transform_config({"response_format": {"type": "text"}}) == {}


def test_grounding_flag_never_reaches_generation_config():
    assert transform_config({"use_grounding": True, "temperature": 1}) == {
        "temperature": 1
    }
