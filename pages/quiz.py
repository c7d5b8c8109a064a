"""
Quiz page
Configure a quiz, answer it one question at a time, then review the results
"""

import streamlit as st

from backend.controllers import QuizController
from backend.errors import InvalidRequest
from components.app_state import get_controller, require_active_syllabus
from utils.config import QUIZ_DIFFICULTIES, QUIZ_MAX_QUESTIONS, QUIZ_MIN_QUESTIONS

st.markdown("# 📝 Quiz")

syllabus = require_active_syllabus()
if syllabus is None:
    st.stop()

quiz = get_controller("quiz", QuizController)

if quiz.state == QuizController.CONFIGURING:
    with st.form("quiz_config"):
        topic = st.selectbox("Topic", options=QuizController.topic_choices(syllabus.mind_map))
        difficulty = st.select_slider("Difficulty", options=QUIZ_DIFFICULTIES, value="medium")
        num_questions = st.number_input(
            "Number of questions",
            min_value=QUIZ_MIN_QUESTIONS,
            max_value=QUIZ_MAX_QUESTIONS,
            value=5,
        )
        st.form_submit_button("Generate Quiz", type="primary", disabled=quiz.pending, on_click=quiz.request)

    if quiz.pending:
        with st.spinner("Writing your quiz..."):
            result = quiz.generate(topic, difficulty, int(num_questions), syllabus.source_text)
        if result.success:
            st.rerun()
        elif result.error_type == "overloaded":
            st.warning(result.error)
        else:
            st.error(result.error)

elif quiz.state == QuizController.TAKING:
    question = quiz.current_question
    total = len(quiz.questions)

    st.progress(quiz.current / total, text=f"Question {quiz.current + 1} of {total}")
    st.markdown(f"### {question.question}")

    choice = st.radio(
        "Choose an answer",
        options=question.options,
        index=question.options.index(quiz.answers[quiz.current]) if quiz.current in quiz.answers else None,
        key=f"quiz_answer_{quiz.current}",
        label_visibility="collapsed",
    )

    is_last = quiz.current + 1 == total
    if st.button("Finish" if is_last else "Next", type="primary", disabled=choice is None):
        try:
            quiz.select_answer(choice)
        except InvalidRequest as e:
            st.error(str(e))
        else:
            quiz.next_question()
            st.rerun()

else:
    correct, total = quiz.score()
    st.markdown(f"## You scored {correct} / {total}")
    st.progress(correct / total if total else 0.0)

    for index, question in enumerate(quiz.questions):
        answer = quiz.answers.get(index)
        icon = "✅" if quiz.is_correct(index) else "❌"
        with st.expander(f"{icon} {index + 1}. {question.question}"):
            st.markdown(f"**Your answer:** {answer or '-'}")
            st.markdown(f"**Correct answer:** {question.correct_answer}")
            if question.explanation:
                st.info(question.explanation)

    if st.button("🔄 New Quiz", type="primary"):
        quiz.reset()
        st.rerun()
