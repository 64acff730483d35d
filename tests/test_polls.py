import polls
from polls import POLLS, PollDefinition, format_title, get_default_poll, get_poll_by_index


def test_format_title_appends_hashtags():
    poll = PollDefinition(title="Best editor?", options=("vim", "emacs"), hashtags=("dev", "tools"))
    assert format_title(poll) == "Best editor? #dev #tools"


def test_format_title_without_hashtags():
    poll = PollDefinition(title="Best editor?", options=("vim", "emacs"))
    assert format_title(poll) == "Best editor?"


def test_default_poll_is_first_with_formatted_title():
    poll = get_default_poll()
    assert poll.title == "What's your favorite programming language? #programming #coding #dev"
    assert poll.options == ("JavaScript", "Python", "Java", "C++")
    assert poll.image_path == polls.IMAGES_DIR / "test.png"


def test_lookup_does_not_mutate_config():
    before = POLLS[1].title
    get_poll_by_index(1)
    get_poll_by_index(1)
    assert POLLS[1].title == before
    assert get_poll_by_index(1).title == "Which framework do you prefer? #webdev #frontend"
    assert get_poll_by_index(1).duration_hours == 48


def test_out_of_range_index_is_none():
    assert get_poll_by_index(len(POLLS)) is None
    assert get_poll_by_index(-1) is None


def test_configured_polls_are_postable():
    for poll in POLLS:
        assert poll.title
        assert 1 <= len(poll.options) <= 4
        assert poll.duration_hours > 0
