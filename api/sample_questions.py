"""
api/sample_questions.py — 체험용 BT 과목 샘플 문제

여섯 가지 문제 유형을 모두 포함한다. 실제 문제 은행이 연결되기 전까지
인메모리 문제 은행의 기본 데이터로 쓴다.
"""

from mock_exam.models.question_model import Question

_MCQ = [
    ("BT-001", "BTA", "Business organisations",
     "Which type of organisation is owned by its shareholders and run by directors?",
     ["Sole trader", "Partnership", "Limited company", "Co-operative"], 2, "easy"),
    ("BT-002", "BTA", "Stakeholders",
     "Which of the following is an internal stakeholder?",
     ["Bank", "Employee", "Supplier", "Government"], 1, "easy"),
    ("BT-003", "BTB", "PESTEL",
     "A change in interest rates is an example of which PESTEL factor?",
     ["Political", "Economic", "Social", "Legal"], 1, "easy"),
    ("BT-004", "BTB", "Competitive forces",
     "In Porter's five forces model, which force is strengthened by low switching costs for customers?",
     ["Threat of new entrants", "Bargaining power of buyers", "Rivalry", "Power of suppliers"], 1, "medium"),
    ("BT-005", "BTC", "Corporate governance",
     "Which committee is normally responsible for overseeing the external audit?",
     ["Remuneration committee", "Nomination committee", "Audit committee", "Risk committee"], 2, "medium"),
    ("BT-006", "BTC", "Internal control",
     "Segregation of duties is primarily designed to prevent which of the following?",
     ["Fraud", "Inflation", "Staff turnover", "Late filing"], 0, "medium"),
    ("BT-007", "BTD", "Leadership",
     "Which leadership style involves the leader making decisions without consulting the team?",
     ["Democratic", "Laissez-faire", "Autocratic", "Consultative"], 2, "easy"),
    ("BT-008", "BTD", "Motivation",
     "According to Herzberg, which of the following is a hygiene factor?",
     ["Recognition", "Salary", "Achievement", "Responsibility"], 1, "medium"),
    ("BT-009", "BTE", "Team development",
     "In Tuckman's model, which stage follows 'storming'?",
     ["Forming", "Norming", "Performing", "Adjourning"], 1, "easy"),
    ("BT-010", "BTE", "Communication",
     "Which of the following is a barrier to effective communication?",
     ["Feedback", "Jargon", "Active listening", "Clear objectives"], 1, "easy"),
    ("BT-011", "BTF", "Ethics",
     "Which fundamental principle requires an accountant not to disclose information without authority?",
     ["Integrity", "Objectivity", "Confidentiality", "Professional behaviour"], 2, "medium"),
]

SAMPLE_QUESTIONS = [
    Question(
        id=qid,
        paper_code="BT",
        unit_code=unit,
        type="MCQ_SINGLE" if n % 2 else "mcq",
        prompt=prompt,
        options=options,
        correct_option_index=correct,
        difficulty=difficulty,
        topic_name=topic,
        explanation=f"The correct answer is '{options[correct]}'.",
    )
    for n, (qid, unit, topic, prompt, options, correct, difficulty) in enumerate(_MCQ)
] + [
    Question(
        id="BT-012", paper_code="BT", unit_code="BTB", type="MCQ_MULTI",
        prompt="Which TWO of the following are elements of the marketing mix?",
        options=["Price", "Profit", "Promotion", "Productivity"],
        metadata={"correctAnswers": [0, 2]},
        difficulty="medium", topic_name="Marketing",
        explanation="Price and promotion are two of the 4Ps.",
    ),
    Question(
        id="BT-013", paper_code="BT", unit_code="BTC", type="MCQ_MULTI",
        prompt="Which TWO of the following are features of an effective internal control system?",
        options=["Authorisation", "Unlimited access", "Reconciliation", "Single-person approval"],
        metadata={"correctAnswers": [0, 2]},
        difficulty="hard", topic_name="Internal control",
    ),
    Question(
        id="BT-014", paper_code="BT", unit_code="BTA", type="FILL_IN_BLANK",
        prompt="The ___ is the highest decision-making body of a limited company, elected by the ___.",
        metadata={"blanks": [{"correctAnswer": "board of directors"}, {"correctAnswer": "shareholders"}]},
        difficulty="medium", topic_name="Business organisations",
    ),
    Question(
        id="BT-015", paper_code="BT", unit_code="BTD", type="FILL_IN_BLANK",
        prompt="Maslow placed ___ needs at the top of the hierarchy.",
        metadata={"blanks": [{"correctAnswer": "self-actualisation"}]},
        difficulty="easy", topic_name="Motivation",
    ),
    Question(
        id="BT-016", paper_code="BT", unit_code="BTB", type="CALCULATION",
        prompt="Demand falls from 1,000 to 900 units when price rises by 20%. What is the price elasticity of demand (absolute value)?",
        answer_text="0.5",
        metadata={"tolerance": 0.01},
        difficulty="hard", topic_name="Elasticity",
        explanation="% change in quantity (10%) / % change in price (20%) = 0.5",
    ),
    Question(
        id="BT-017", paper_code="BT", unit_code="BTF", type="CALCULATION",
        prompt="A company's revenue is $200,000 and gross profit is $50,000. What is the gross margin (%)?",
        answer_text="25",
        metadata={"tolerance": 0, "unit": "%"},
        difficulty="easy", topic_name="Financial ratios",
    ),
    Question(
        id="BT-018", paper_code="BT", unit_code="BTD", type="MATCHING",
        prompt="Match each theorist to their theory.",
        metadata={
            "leftItems": ["Maslow", "Herzberg", "Vroom"],
            "rightItems": ["Expectancy theory", "Hierarchy of needs", "Two-factor theory"],
            "correctPairs": [[0, 1], [1, 2], [2, 0]],
        },
        difficulty="medium", topic_name="Motivation",
    ),
    Question(
        id="BT-019", paper_code="BT", unit_code="BTC", type="MATCHING",
        prompt="Match each committee to its main responsibility.",
        metadata={
            "leftItems": ["Audit", "Remuneration"],
            "rightItems": ["Director pay", "External auditor oversight"],
            "correctPairs": [[0, 1], [1, 0]],
        },
        difficulty="medium", topic_name="Corporate governance",
    ),
    Question(
        id="BT-020", paper_code="BT", unit_code="BTE", type="SCENARIO_BASED",
        prompt="Read the scenario and answer the questions that follow.",
        metadata={
            "scenarioText": "Aya leads a newly formed project team that argues frequently about roles.",
            "subQuestions": [
                {"question": "Which Tuckman stage is the team in?", "type": "MCQ_SINGLE",
                 "options": ["Forming", "Storming", "Norming"], "correctAnswer": 1},
                {"question": "Which Belbin role focuses on clarifying goals?", "type": "MCQ_SINGLE",
                 "options": ["Co-ordinator", "Plant", "Finisher"], "correctAnswer": 0},
            ],
        },
        difficulty="hard", topic_name="Team development",
    ),
]
