"""
API Key overlay component
Shows when user needs to configure their AI provider API key
"""

import streamlit as st
from utils.config import (
    load_api_key, save_api_key, get_current_provider,
    set_current_provider, SUPPORTED_PROVIDERS, CONFIG_FILE
)
from utils.providers import validate_api_key, get_provider_info


def check_and_show_api_overlay() -> bool:
    """
    Check if API key is configured and show overlay if not.
    Returns True if API key is configured, False otherwise.
    """
    if "api_key" not in st.session_state or not st.session_state.api_key:
        st.session_state.api_key = load_api_key(get_current_provider())

    if st.session_state.api_key:
        return True

    show_api_key_overlay()
    return False


@st.dialog("🔑 AI Provider Setup", width="large")
def show_api_key_overlay():
    """Show modal dialog for API key configuration"""
    st.markdown("""
    ### Welcome to StudyMap!

    StudyMap turns your syllabus into a mind map, quizzes, flashcards and a study plan.
    To do that it needs an API key from a supported AI provider.

    **Your API key is stored locally and is never sent anywhere except your chosen provider.**
    """)

    current_provider = get_current_provider()

    provider_col, key_col = st.columns([1, 2])

    with provider_col:
        selected_provider = st.selectbox(
            "Choose AI Provider:",
            options=SUPPORTED_PROVIDERS,
            index=SUPPORTED_PROVIDERS.index(current_provider),
            format_func=lambda x: get_provider_info(x).get("name", x.title()),
            help="Select your preferred AI provider"
        )

        if selected_provider != current_provider:
            set_current_provider(selected_provider)
            st.rerun()

    provider_info = get_provider_info(selected_provider)
    provider_name = provider_info.get('name', selected_provider)
    prefix = provider_info.get('api_key_prefix', 'sk-')

    with key_col:
        api_key = st.text_input(
            f"Enter your {provider_name} API key:",
            type="password",
            placeholder=prefix + "...",
            help=f"Your API key will be stored in {CONFIG_FILE} with secure permissions"
        )

    col1, col2 = st.columns(2)

    with col1:
        if st.button("💾 Save API Key", type="primary", use_container_width=True, disabled=not api_key):
            if api_key and api_key.startswith(prefix):
                with st.spinner("Validating API key..."):
                    if validate_api_key(api_key, selected_provider):
                        save_api_key(api_key, selected_provider)
                        st.session_state.api_key = api_key
                        st.success("✅ API key validated and saved!")
                        st.rerun()
                    else:
                        st.error(f"❌ Invalid API key for {provider_name}")
            else:
                st.error(f"Please enter a valid {provider_name} API key (should start with '{prefix}')")

    with col2:
        st.link_button(
            "🔗 Get API Key",
            provider_info.get('signup_url', '#'),
            help=f"Click to open {provider_name}'s API key page",
            use_container_width=True
        )

    st.markdown("---")
    st.markdown("💡 **Tip:** You can also set the key later from the Settings page.")
