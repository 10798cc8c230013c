SAMPLE_PROMPTS = [
    {
        "title": "Company Org Chart",
        "text": "Create a company org chart with a CEO at the top, three directors (Engineering, Marketing, Finance) under them, and two employees under each director.",
    },
    {
        "title": "Software Development Process",
        "text": "Create a flow diagram for the agile software development process, including the stages: Planning, Design, Development, Testing, Deployment and Maintenance, with possible feedback loops between stages.",
    },
    {
        "title": "System Architecture",
        "text": "Create a system architecture diagram for a web application with: frontend, backend, database, authentication service, and third-party APIs. Show the connections between these components.",
    },
    {
        "title": "Project Mind Map",
        "text": "Create a mind map for an e-commerce website project with the main branches: Features, Design, Marketing, Technology, and Budget. Add 2-3 sub-branches for each main branch.",
    },
    {
        "title": "Product Life Cycle",
        "text": "Create a cyclic diagram showing the stages of a product life cycle: Development, Introduction, Growth, Maturity, Decline, and possibly Renewal.",
    },
]
